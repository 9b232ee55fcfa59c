# marketplace/models/catalog.py
from sqlalchemy import Column, String, Integer, Float, DateTime, ForeignKey, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from marketplace.models.base import Base, utcnow


class Category(Base):
    __tablename__ = "categories"

    name = Column(String(120), unique=True, nullable=False)
    products = relationship("Product", back_populates="category")


class Product(Base):
    __tablename__ = "products"
    __table_args__ = (UniqueConstraint("user_sid", "code", name="uq_products_user_code"),)

    user_sid = Column(String(22), ForeignKey("users.sid", ondelete="CASCADE"), nullable=False, index=True)
    user = relationship("User")
    category_sid = Column(String(22), ForeignKey("categories.sid", ondelete="SET NULL"), nullable=True)
    category = relationship("Category", back_populates="products")
    code = Column(String(64), nullable=False)
    name = Column(String(200), nullable=False)
    description = Column(Text)
    price = Column(Float, nullable=False, default=0.0)
    stock = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=utcnow)
