import os

# settings are read at import time
os.environ.setdefault("SECRET_KEY", "test_secret_key_for_sessions")
os.environ.setdefault("ADMIN_CODE", "admin-gate-code")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ.setdefault("FRONTEND_URL", "http://frontend.test")
os.environ.setdefault("BACKEND_URL", "http://backend.test")

import pytest
from datetime import timedelta
from httpx import AsyncClient, ASGITransport
from unittest.mock import AsyncMock

from marketplace.core.config import settings
from marketplace.core.security import SessionIssuer, get_password_hash
from marketplace.db.session import Database, get_db
from marketplace.main import app
from marketplace.models.base import Base
from marketplace.models.catalog import Category, Product
from marketplace.models.users import User, UserRole
from marketplace.services.email import get_email_sender


@pytest.fixture
async def database(tmp_path):
    """File-backed SQLite database, fresh for every test"""
    db = Database(f"sqlite+aiosqlite:///{tmp_path}/test.db")
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
async def db_session(database):
    async with database.session() as session:
        yield session


@pytest.fixture
def session_issuer():
    return SessionIssuer(settings.SECRET_KEY)


@pytest.fixture
def mock_email_sender():
    """Email sender whose send() records calls instead of talking SMTP"""
    sender = AsyncMock()
    sender.send.return_value = None
    return sender


async def _create_user(db_session, name, email, password, role=UserRole.USER):
    user = User(
        sid=Base.generate_sid(),
        name=name,
        email=email,
        password_hash=get_password_hash(password),
        role=role,
        admin_password_hash=get_password_hash(settings.ADMIN_CODE) if role == UserRole.ADMIN else None,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def test_user(db_session):
    """Create a regular user and return credentials"""
    user = await _create_user(db_session, "Ana Pérez", "ana@example.com", "secret123")
    return {
        "user": user,
        "email": "ana@example.com",
        "password": "secret123",
        "sid": user.sid,
    }


@pytest.fixture
async def other_user(db_session):
    user = await _create_user(db_session, "Luis Gómez", "luis@example.com", "secret456")
    return {
        "user": user,
        "email": "luis@example.com",
        "password": "secret456",
        "sid": user.sid,
    }


@pytest.fixture
async def admin_user(db_session):
    user = await _create_user(db_session, "Admin", "admin@example.com", "adminpass", role=UserRole.ADMIN)
    return {
        "user": user,
        "email": "admin@example.com",
        "password": "adminpass",
        "sid": user.sid,
    }


def _token_for(issuer, user):
    return issuer.issue(
        {"user_id": user["sid"], "email": user["email"], "role": user["user"].role},
        timedelta(days=1),
    )


@pytest.fixture
def test_token(session_issuer, test_user):
    return _token_for(session_issuer, test_user)


@pytest.fixture
def other_token(session_issuer, other_user):
    return _token_for(session_issuer, other_user)


@pytest.fixture
def admin_token(session_issuer, admin_user):
    return _token_for(session_issuer, admin_user)


@pytest.fixture
async def client(db_session, session_issuer, mock_email_sender):
    """Create test client with overridden dependencies"""

    async def override_get_db():
        yield db_session

    app.state.session_issuer = session_issuer
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_email_sender] = lambda: mock_email_sender

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides = {}


def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def authorized_client(client, test_token):
    client.headers.update(auth_headers(test_token))
    return client


@pytest.fixture
async def test_category(db_session):
    category = Category(sid=Base.generate_sid(), name="Bebidas")
    db_session.add(category)
    await db_session.commit()
    await db_session.refresh(category)
    return category


@pytest.fixture
async def test_product(db_session, test_user, test_category):
    product = Product(
        sid=Base.generate_sid(),
        user_sid=test_user["sid"],
        category_sid=test_category.sid,
        code="P-001",
        name="Café molido",
        description="Bolsa de 500 g",
        price=12.5,
        stock=10,
    )
    db_session.add(product)
    await db_session.commit()
    await db_session.refresh(product)
    return product
