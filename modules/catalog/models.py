"""
Catalog Module - Models
========================
Product: the price and stock source of truth for carts.
"""

import json
from decimal import Decimal

from sqlalchemy import (
    Column, Integer, String, Numeric, Boolean, Text,
    ForeignKey, DateTime, CheckConstraint, Index,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from config.database import Base
from config.settings import LOW_STOCK_THRESHOLD, PRODUCT_PLACEHOLDER_IMAGE
from common.helpers import to_money, money_float, isoformat


# ==========================================
# 📦 Product
# ==========================================

class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    price = Column(Numeric(12, 2), nullable=False)
    category = Column(String(50), nullable=False, index=True)
    stock = Column(Integer, default=0, server_default="0", nullable=False)
    rating = Column(Numeric(2, 1), default=0, server_default="0", nullable=False)
    discount = Column(Integer, default=0, server_default="0", nullable=False)  # percent
    views = Column(Integer, default=0, server_default="0", nullable=False)

    # === Images ===
    image = Column(String, default=PRODUCT_PLACEHOLDER_IMAGE, nullable=True)  # external URL
    image_path = Column(String, nullable=True)                                 # uploaded file on disk
    image_content_type = Column(String(50), nullable=True)
    _tags = Column("tags", Text, nullable=True)  # JSON list

    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    is_public = Column(Boolean, default=True, server_default="true", nullable=False)
    is_active = Column(Boolean, default=True, server_default="true", nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=True)

    owner = relationship("User", foreign_keys=[owner_id])

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_product_price"),
        CheckConstraint("stock >= 0", name="ck_product_stock"),
        CheckConstraint("discount >= 0 AND discount <= 100", name="ck_product_discount"),
        Index("ix_product_category_public", "category", "is_public", "is_active"),
        Index("ix_product_owner_created", "owner_id", "created_at"),
    )

    @property
    def tags(self) -> list:
        if not self._tags:
            return []
        try:
            return json.loads(self._tags)
        except (json.JSONDecodeError, TypeError):
            return []

    @tags.setter
    def tags(self, value: list):
        self._tags = json.dumps(value) if value else None

    @property
    def discounted_price(self) -> Decimal:
        if self.discount and self.discount > 0:
            return to_money(Decimal(self.price) * (100 - self.discount) / 100)
        return to_money(self.price)

    @property
    def stock_status(self) -> str:
        if not self.stock:
            return "Out of Stock"
        if self.stock < LOW_STOCK_THRESHOLD:
            return "Low Stock"
        return "In Stock"

    @property
    def image_url(self):
        """API path serving the uploaded image, if there is one."""
        return f"/api/products/{self.id}/image" if self.image_path else None

    def to_dict(self, include_owner: bool = True) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": money_float(self.price),
            "discountedPrice": money_float(self.discounted_price),
            "category": self.category,
            "image": self.image,
            "imageUrl": self.image_url,
            "stock": self.stock,
            "stockStatus": self.stock_status,
            "rating": float(self.rating or 0),
            "discount": self.discount,
            "tags": self.tags,
            "views": self.views,
            "isPublic": self.is_public,
            "isActive": self.is_active,
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }
        if include_owner:
            data["owner"] = (
                {"id": self.owner.id, "name": self.owner.name, "email": self.owner.email}
                if self.owner else None
            )
        else:
            data["owner"] = self.owner_id
        return data

    def __repr__(self):
        return f"<Product {self.name} ({self.stock} in stock)>"
