from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from fastapi.staticfiles import StaticFiles
import os
import time
import traceback
from loguru import logger
import uuid
from prometheus_client import Counter, Histogram, generate_latest
from prometheus_client.openmetrics.exposition import CONTENT_TYPE_LATEST

from marketplace.api.v1 import auth, users, profile, products, programs
from marketplace.core.config import settings
from marketplace.core.exceptions import AppError
from marketplace.core.security import SessionIssuer
from marketplace.db.session import Database
from marketplace.services.email import EmailSender

# every table has to be on Base.metadata before create_all / alembic
import marketplace.models.users  # noqa: F401
import marketplace.models.catalog  # noqa: F401
import marketplace.models.program  # noqa: F401

REQUEST_COUNT = Counter(
    "app_request_count",
    "Application Request Count",
    ["app_name", "method", "endpoint", "http_status"]
)
REQUEST_LATENCY = Histogram(
    "app_request_latency_seconds",
    "Application Request Latency",
    ["app_name", "method", "endpoint"]
)

APP_NAME = "tic-marketplace"

app = FastAPI(
    title=settings.PROJECT_NAME,
    description="API de autenticación, perfiles y catálogo de productos",
    version="0.1.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def server_error_response(exc: Exception) -> JSONResponse:
    content = {"message": "Error en el servidor."}
    if not settings.is_production:
        content["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return JSONResponse(status_code=500, content=content)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    request_id = str(uuid.uuid4())
    logger.info(f"[{request_id}] {request.method} {request.url.path}")

    start_time = time.time()

    try:
        response = await call_next(request)
        process_time = time.time() - start_time

        REQUEST_LATENCY.labels(
            APP_NAME,
            request.method,
            request.url.path
        ).observe(process_time)

        REQUEST_COUNT.labels(
            APP_NAME,
            request.method,
            request.url.path,
            response.status_code
        ).inc()

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "no-referrer"

        logger.info(f"[{request_id}] Completed {response.status_code} in {process_time:.4f}s")

        return response
    except Exception as e:
        process_time = time.time() - start_time
        logger.exception(f"[{request_id}] Failed in {process_time:.4f}s: {str(e)}")

        REQUEST_COUNT.labels(APP_NAME, request.method, request.url.path, 500).inc()
        return server_error_response(e)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"message": "Datos inválidos.", "errors": jsonable_encoder(exc.errors())}
    )


app.include_router(
    auth.router,
    prefix=f"{settings.API_PREFIX}/auth",
    tags=["authentication"]
)

app.include_router(
    users.router,
    prefix=f"{settings.API_PREFIX}/users",
    tags=["users"]
)

app.include_router(
    profile.router,
    prefix=settings.API_PREFIX,
    tags=["profile"]
)

app.include_router(
    products.router,
    prefix=f"{settings.API_PREFIX}/productos",
    tags=["products"]
)

app.include_router(
    programs.router,
    prefix=f"{settings.API_PREFIX}/program",
    tags=["programs"]
)

app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False), name="uploads")


@app.get("/api/health")
async def health_check():
    return {"status": "ok"}


@app.get("/metrics")
async def metrics():
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


@app.on_event("startup")
async def startup():
    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)

    app.state.session_issuer = SessionIssuer(settings.SECRET_KEY)
    app.state.email_sender = EmailSender.from_settings(settings)
    if not settings.SMTP_HOST:
        logger.warning("SMTP_HOST is not set, password reset emails will fail")

    app.state.db = Database(
        settings.SQLALCHEMY_DATABASE_URI,
        pool_size=settings.DB_POOL_SIZE,
        pool_timeout=settings.DB_POOL_TIMEOUT,
    )
    logger.info("Connecting to the database...")
    try:
        await app.state.db.ping()
        logger.info("Connected to the database")
    except Exception as e:
        logger.error(f"Failed to connect to the database: {str(e)}")
        raise


@app.on_event("shutdown")
async def shutdown():
    await app.state.db.dispose()
