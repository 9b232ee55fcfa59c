from fastapi import APIRouter, Depends, File, UploadFile, status
from fastapi.responses import JSONResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from marketplace.core.dependencies import get_current_identity
from marketplace.core.security import SessionClaims
from marketplace.db.session import get_db
from marketplace.schemas.catalog import (
    CategoryCreate, CategoryResponse, ProductCreate, ProductUpdate, ProductResponse,
    StockUpdate, ImportSummary,
)
from marketplace.schemas.user import MessageResponse
from marketplace.services.catalog import CatalogService
from marketplace.services.file_parser import detect_and_parse_file, build_excel, PRODUCT_COLUMNS, XLSX_MEDIA_TYPE

router = APIRouter()


def get_catalog(
        identity: SessionClaims = Depends(get_current_identity),
        db: AsyncSession = Depends(get_db),
) -> CatalogService:
    return CatalogService(db, identity)


@router.get("/categorias", response_model=List[CategoryResponse])
async def list_categories(catalog: CatalogService = Depends(get_catalog)):
    return await catalog.list_categories()


@router.post("/categorias", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(body: CategoryCreate, catalog: CatalogService = Depends(get_catalog)):
    return await catalog.create_category(body.name)


@router.put("/categorias/{category_sid}", response_model=CategoryResponse)
async def rename_category(
        category_sid: str,
        body: CategoryCreate,
        catalog: CatalogService = Depends(get_catalog),
):
    return await catalog.rename_category(category_sid, body.name)


@router.delete("/categorias/{category_sid}", response_model=MessageResponse)
async def delete_category(category_sid: str, catalog: CatalogService = Depends(get_catalog)):
    await catalog.delete_category(category_sid)
    return {"message": "Categoría eliminada exitosamente."}


@router.get("/export-excel")
async def export_excel(catalog: CatalogService = Depends(get_catalog)):
    records = await catalog.export_records()
    content = build_excel(records, PRODUCT_COLUMNS)
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": 'attachment; filename="productos.xlsx"'},
    )


# keeps GET /import-excel from being read as a product id
@router.get("/import-excel", include_in_schema=False)
async def import_excel_wrong_method(identity: SessionClaims = Depends(get_current_identity)):
    return JSONResponse(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        content={"message": "Método GET no permitido. Usa POST con FormData para importar Excel."},
    )


@router.post("/import-excel", response_model=ImportSummary)
async def import_excel(
        file: UploadFile = File(...),
        catalog: CatalogService = Depends(get_catalog),
):
    records = await detect_and_parse_file(file)
    return await catalog.import_records(records)


@router.get("/buscar/{code}", response_model=ProductResponse)
async def find_by_code(code: str, catalog: CatalogService = Depends(get_catalog)):
    return await catalog.get_own_product_by_code(code)


@router.put("/actualizar-stock", response_model=ProductResponse)
async def update_stock(body: StockUpdate, catalog: CatalogService = Depends(get_catalog)):
    return await catalog.decrement_stock(body.code, body.quantity)


@router.get("", response_model=List[ProductResponse])
async def list_products(
        search: Optional[str] = None,
        category_sid: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
        catalog: CatalogService = Depends(get_catalog),
):
    return await catalog.list_products(search=search, category_sid=category_sid, skip=skip, limit=limit)


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(body: ProductCreate, catalog: CatalogService = Depends(get_catalog)):
    return await catalog.create_product(body.model_dump())


@router.get("/{product_sid}", response_model=ProductResponse)
async def get_product(product_sid: str, catalog: CatalogService = Depends(get_catalog)):
    return await catalog.get_product(product_sid)


@router.put("/{product_sid}", response_model=ProductResponse)
async def update_product(
        product_sid: str,
        body: ProductUpdate,
        catalog: CatalogService = Depends(get_catalog),
):
    return await catalog.update_product(product_sid, body.model_dump(exclude_unset=True))


@router.delete("/{product_sid}", response_model=MessageResponse)
async def delete_product(product_sid: str, catalog: CatalogService = Depends(get_catalog)):
    await catalog.delete_product(product_sid)
    return {"message": "Producto eliminado exitosamente."}
