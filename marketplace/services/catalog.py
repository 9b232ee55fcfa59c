from typing import Any, Dict, List, Optional

from loguru import logger
from sqlalchemy import select, update, delete, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.dependencies import ensure_can_act_on
from marketplace.core.exceptions import NotFoundError, ConflictError, ValidationError
from marketplace.core.security import SessionClaims
from marketplace.models.base import Base
from marketplace.models.catalog import Category, Product
from marketplace.models.users import UserRole
from marketplace.services.file_parser import PRODUCT_COLUMNS, clean_text, to_float, to_int


class CatalogService:
    """Categories are shared; products belong to the user who created them."""

    def __init__(self, db: AsyncSession, identity: SessionClaims):
        self.db = db
        self.identity = identity

    async def _commit_unique(self, conflict_message: str) -> None:
        """Commit, reporting a unique-constraint race as a conflict."""
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError(conflict_message)

    # categories

    async def list_categories(self) -> List[Category]:
        result = await self.db.execute(select(Category).order_by(Category.name))
        return list(result.scalars().all())

    async def get_category(self, category_sid: str) -> Category:
        result = await self.db.execute(select(Category).where(Category.sid == category_sid))
        category = result.scalar_one_or_none()
        if category is None:
            raise NotFoundError("Categoría no encontrada.")
        return category

    async def _category_by_name(self, name: str) -> Optional[Category]:
        result = await self.db.execute(select(Category).where(Category.name == name))
        return result.scalar_one_or_none()

    async def create_category(self, name: str) -> Category:
        name = name.strip()
        if await self._category_by_name(name):
            raise ConflictError("La categoría ya existe.")
        category = Category(sid=Base.generate_sid(), name=name)
        self.db.add(category)
        await self._commit_unique("La categoría ya existe.")
        return category

    async def rename_category(self, category_sid: str, name: str) -> Category:
        category = await self.get_category(category_sid)
        name = name.strip()
        existing = await self._category_by_name(name)
        if existing is not None and existing.sid != category.sid:
            raise ConflictError("La categoría ya existe.")
        category.name = name
        await self._commit_unique("La categoría ya existe.")
        return category

    async def delete_category(self, category_sid: str) -> None:
        category = await self.get_category(category_sid)
        await self.db.execute(
            update(Product).where(Product.category_sid == category.sid).values(category_sid=None)
        )
        await self.db.execute(delete(Category).where(Category.id == category.id))
        await self.db.commit()

    # products

    async def list_products(
            self,
            search: Optional[str] = None,
            category_sid: Optional[str] = None,
            skip: int = 0,
            limit: int = 100,
    ) -> List[Product]:
        query = select(Product)
        if self.identity.role != UserRole.ADMIN:
            query = query.where(Product.user_sid == self.identity.user_id)
        if category_sid:
            query = query.where(Product.category_sid == category_sid)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.where(or_(Product.name.ilike(pattern), Product.code.ilike(pattern)))

        result = await self.db.execute(query.order_by(Product.name).offset(skip).limit(limit))
        return list(result.scalars().all())

    async def get_product(self, product_sid: str) -> Product:
        result = await self.db.execute(select(Product).where(Product.sid == product_sid))
        product = result.scalar_one_or_none()
        if product is None:
            raise NotFoundError("Producto no encontrado.")
        ensure_can_act_on(self.identity, product.user_sid, "No tienes permiso para acceder a este producto.")
        return product

    async def get_own_product_by_code(self, code: str, for_update: bool = False) -> Product:
        query = select(Product).where(
            Product.user_sid == self.identity.user_id,
            Product.code == code.strip(),
        )
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        product = result.scalar_one_or_none()
        if product is None:
            raise NotFoundError("Producto no encontrado.")
        return product

    async def _ensure_code_free(self, owner_sid: str, code: str, exclude_sid: Optional[str] = None) -> None:
        query = select(Product.sid).where(Product.user_sid == owner_sid, Product.code == code)
        result = await self.db.execute(query)
        existing = result.scalar_one_or_none()
        if existing is not None and existing != exclude_sid:
            raise ConflictError("Ya existe un producto con ese código.")

    async def create_product(self, data: Dict[str, Any]) -> Product:
        if data.get("category_sid"):
            await self.get_category(data["category_sid"])
        await self._ensure_code_free(self.identity.user_id, data["code"])

        product = Product(sid=Base.generate_sid(), user_sid=self.identity.user_id, **data)
        self.db.add(product)
        await self._commit_unique("Ya existe un producto con ese código.")
        return product

    async def update_product(self, product_sid: str, changes: Dict[str, Any]) -> Product:
        product = await self.get_product(product_sid)
        if changes.get("category_sid"):
            await self.get_category(changes["category_sid"])
        if changes.get("code") and changes["code"] != product.code:
            await self._ensure_code_free(product.user_sid, changes["code"], exclude_sid=product.sid)

        for field, value in changes.items():
            setattr(product, field, value)
        await self._commit_unique("Ya existe un producto con ese código.")
        return product

    async def delete_product(self, product_sid: str) -> None:
        product = await self.get_product(product_sid)
        await self.db.execute(delete(Product).where(Product.id == product.id))
        await self.db.commit()

    async def decrement_stock(self, code: str, quantity: int) -> Product:
        product = await self.get_own_product_by_code(code, for_update=True)
        available = product.stock
        if available < quantity:
            await self.db.rollback()
            raise ValidationError(f"Stock insuficiente. Disponible: {available}")
        product.stock -= quantity
        await self.db.commit()
        return product

    # spreadsheets

    async def import_records(self, records: List[Dict[str, Any]]) -> Dict[str, Any]:
        created = 0
        updated = 0
        errors = []
        categories: Dict[str, Category] = {}

        try:
            for index, record in enumerate(records, start=2):
                code = clean_text(record.get("codigo"))
                name = clean_text(record.get("nombre"))
                if not code or not name:
                    errors.append({"row": index, "message": "codigo y nombre son obligatorios"})
                    continue

                try:
                    price = to_float(record.get("precio"))
                    stock = to_int(record.get("stock"))
                except ValueError:
                    errors.append({"row": index, "message": "precio o stock inválido"})
                    continue

                category_sid = None
                category_name = clean_text(record.get("categoria"))
                if category_name:
                    category = categories.get(category_name) or await self._category_by_name(category_name)
                    if category is None:
                        category = Category(sid=Base.generate_sid(), name=category_name)
                        self.db.add(category)
                    categories[category_name] = category
                    category_sid = category.sid

                result = await self.db.execute(
                    select(Product).where(Product.user_sid == self.identity.user_id, Product.code == code)
                )
                product = result.scalar_one_or_none()
                if product is None:
                    product = Product(sid=Base.generate_sid(), user_sid=self.identity.user_id, code=code)
                    self.db.add(product)
                    created += 1
                else:
                    updated += 1

                product.name = name
                product.description = clean_text(record.get("descripcion"))
                product.price = price
                product.stock = stock
                product.category_sid = category_sid
                await self.db.flush()

            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(f"Imported {created + updated} products for {self.identity.user_id} ({len(errors)} rejected)")
        return {
            "message": f"Importados {created + updated} productos. Nuevos: {created}, actualizados: {updated}",
            "rows_imported": created + updated,
            "created": created,
            "updated": updated,
            "errors": errors,
        }

    async def export_records(self) -> List[Dict[str, Any]]:
        result = await self.db.execute(
            select(Product, Category.name)
            .outerjoin(Category, Product.category_sid == Category.sid)
            .where(Product.user_sid == self.identity.user_id)
            .order_by(Product.code)
        )
        return [
            dict(zip(PRODUCT_COLUMNS, (
                product.code, product.name, product.description,
                product.price, product.stock, category_name,
            )))
            for product, category_name in result.all()
        ]
