# marketplace/schemas/catalog.py
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict, Any


class CategoryBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)


class CategoryCreate(CategoryBase):
    pass


class CategoryResponse(CategoryBase):
    sid: str

    class Config:
        from_attributes = True


class ProductBase(BaseModel):
    code: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    price: float = Field(0.0, ge=0)
    stock: int = Field(0, ge=0)
    category_sid: Optional[str] = None

    @field_validator("code", "name")
    @classmethod
    def strip_text(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class ProductCreate(ProductBase):
    pass


class ProductUpdate(BaseModel):
    code: Optional[str] = Field(None, min_length=1, max_length=64)
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    stock: Optional[int] = Field(None, ge=0)
    category_sid: Optional[str] = None


class ProductResponse(ProductBase):
    sid: str
    user_sid: str

    class Config:
        from_attributes = True


class StockUpdate(BaseModel):
    code: str
    quantity: int = Field(..., gt=0)


class ImportSummary(BaseModel):
    message: str
    rows_imported: int
    created: int
    updated: int
    errors: List[Dict[str, Any]] = []
