"""
Catalog Module - Service Layer
================================
Business logic for Products: browse/filter, owner-scoped CRUD and the
uploaded product image.
"""

import logging
from typing import List, Optional

from fastapi import UploadFile
from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from config.settings import (
    PRODUCT_CATEGORIES, PRODUCT_MAX_PRICE, PRODUCT_MAX_STOCK,
    PRODUCT_PLACEHOLDER_IMAGE,
)
from common.exceptions import ValidationError, ProductNotFoundError, AuthorizationError
from common.helpers import safe_int, safe_decimal
from common.upload import save_upload_file, delete_file
from modules.catalog.models import Product
from modules.user.models import User

logger = logging.getLogger("vibecart.catalog")

SORT_OPTIONS = {
    "price-asc": Product.price.asc(),
    "price-desc": Product.price.desc(),
    "name": Product.name.asc(),
}

_UPDATABLE_FIELDS = ("name", "description", "price", "category", "image", "stock", "is_public", "discount", "tags")


def parse_tags(value) -> List[str]:
    """Accept a list or a comma separated string; lower-case, trim, drop blanks."""
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    tags = []
    for tag in value:
        tag = str(tag).strip().lower()
        if not tag:
            continue
        if len(tag) > 30:
            raise ValidationError("Tag cannot exceed 30 characters")
        tags.append(tag)
    return tags


def parse_bool(value, default: bool = True) -> bool:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


class ProductService:

    # ==========================================
    # Queries
    # ==========================================

    def list_public(
        self,
        db: Session,
        category: str = None,
        search: str = None,
        min_price=None,
        max_price=None,
        sort: str = None,
    ) -> List[Product]:
        """Public products with optional filters. Default order is newest first."""
        q = db.query(Product).options(joinedload(Product.owner)).filter(Product.is_public == True)

        if category:
            q = q.filter(Product.category == category)
        if search:
            pattern = f"%{search.strip()}%"
            q = q.filter(or_(Product.name.ilike(pattern), Product.description.ilike(pattern)))

        low = safe_decimal(min_price)
        high = safe_decimal(max_price)
        if low is not None:
            q = q.filter(Product.price >= low)
        if high is not None:
            q = q.filter(Product.price <= high)

        order = SORT_OPTIONS.get(sort)
        if order is not None:
            q = q.order_by(order, Product.id.asc())
        else:
            q = q.order_by(Product.created_at.desc(), Product.id.desc())
        return q.all()

    def list_by_owner(self, db: Session, owner_id: int) -> List[Product]:
        return (
            db.query(Product)
            .filter(Product.owner_id == owner_id)
            .order_by(Product.created_at.desc(), Product.id.desc())
            .all()
        )

    def list_categories(self, db: Session) -> List[str]:
        rows = (
            db.query(Product.category)
            .filter(Product.is_public == True)
            .distinct()
            .order_by(Product.category.asc())
            .all()
        )
        return [r[0] for r in rows]

    def get_by_id(self, db: Session, product_id: int) -> Optional[Product]:
        return db.query(Product).filter(Product.id == product_id).first()

    def get_or_404(self, db: Session, product_id: int) -> Product:
        product = self.get_by_id(db, product_id)
        if not product:
            raise ProductNotFoundError()
        return product

    def get_many(self, db: Session, product_ids: List[int]) -> dict:
        """Batch load products as {id: Product}."""
        if not product_ids:
            return {}
        rows = (
            db.query(Product)
            .options(joinedload(Product.owner))
            .filter(Product.id.in_(product_ids))
            .all()
        )
        return {p.id: p for p in rows}

    # ==========================================
    # Mutations
    # ==========================================

    def create(self, db: Session, owner: User, data: dict, image_file: UploadFile = None) -> Product:
        clean = self._validate(data, partial=False)
        product = Product(
            name=clean["name"],
            description=clean["description"],
            price=clean["price"],
            category=clean["category"],
            image=clean.get("image") or PRODUCT_PLACEHOLDER_IMAGE,
            stock=clean.get("stock", 0),
            discount=clean.get("discount", 0),
            is_public=clean.get("is_public", True),
            owner_id=owner.id,
        )
        product.tags = clean.get("tags", [])
        self._attach_image(product, image_file)

        db.add(product)
        db.flush()
        db.refresh(product)
        logger.info("Product created: id=%s owner=%s", product.id, owner.id)
        return product

    def update(self, db: Session, user: User, product_id: int, data: dict, image_file: UploadFile = None) -> Product:
        product = self.get_or_404(db, product_id)
        self._check_owner(product, user, "update")

        clean = self._validate(data, partial=True)
        for field in _UPDATABLE_FIELDS:
            if field in clean:
                setattr(product, field, clean[field])

        if image_file is not None and image_file.filename:
            old_path = product.image_path
            self._attach_image(product, image_file)
            if old_path and old_path != product.image_path:
                delete_file(old_path)

        db.flush()
        db.refresh(product)
        logger.info("Product updated: id=%s by user=%s", product.id, user.id)
        return product

    def delete(self, db: Session, user: User, product_id: int):
        """Delete a product. Cart lines referencing it are left in place."""
        product = self.get_or_404(db, product_id)
        self._check_owner(product, user, "delete")

        image_path = product.image_path
        db.delete(product)
        db.flush()
        if image_path:
            delete_file(image_path)
        logger.info("Product deleted: id=%s by user=%s", product_id, user.id)

    # ==========================================
    # Private helpers
    # ==========================================

    def _check_owner(self, product: Product, user: User, action: str):
        if product.owner_id != user.id and not user.is_admin:
            raise AuthorizationError(f"You are not authorized to {action} this product")

    def _attach_image(self, product: Product, image_file: Optional[UploadFile]):
        saved = save_upload_file(image_file, subfolder="products") if image_file else None
        if saved:
            product.image_path = saved["path"]
            product.image_content_type = saved["mimetype"]

    def _validate(self, data: dict, partial: bool) -> dict:
        """
        Normalize and check raw product fields (form values arrive as strings).
        With partial=True only the keys present (not None) are checked.
        """
        clean = {}

        def present(key):
            return data.get(key) not in (None, "")

        if present("name") or not partial:
            name = (data.get("name") or "").strip()
            if not name:
                raise ValidationError("Product name is required")
            if len(name) < 3 or len(name) > 100:
                raise ValidationError("Product name must be between 3 and 100 characters")
            clean["name"] = name

        if present("description") or not partial:
            description = (data.get("description") or "").strip()
            if not description:
                raise ValidationError("Product description is required")
            if len(description) < 10 or len(description) > 2000:
                raise ValidationError("Description must be between 10 and 2000 characters")
            clean["description"] = description

        if present("price") or not partial:
            price = safe_decimal(data.get("price"))
            if price is None:
                raise ValidationError("Price is required")
            if price < 0 or price > PRODUCT_MAX_PRICE:
                raise ValidationError(f"Price must be between 0 and {PRODUCT_MAX_PRICE:,}")
            clean["price"] = price

        if present("category") or not partial:
            category = (data.get("category") or "").strip()
            if not category:
                raise ValidationError("Category is required")
            if category not in PRODUCT_CATEGORIES:
                raise ValidationError(f"{category} is not a valid category")
            clean["category"] = category

        if present("stock"):
            stock = safe_int(data.get("stock"))
            if stock is None or stock < 0 or stock > PRODUCT_MAX_STOCK:
                raise ValidationError(f"Stock must be an integer between 0 and {PRODUCT_MAX_STOCK:,}")
            clean["stock"] = stock

        if present("discount"):
            discount = safe_int(data.get("discount"))
            if discount is None or discount < 0 or discount > 100:
                raise ValidationError("Discount must be between 0 and 100")
            clean["discount"] = discount

        if present("image"):
            clean["image"] = str(data["image"]).strip()
        if present("tags"):
            clean["tags"] = parse_tags(data["tags"])
        if present("is_public"):
            clean["is_public"] = parse_bool(data["is_public"])

        return clean


# Singleton
product_service = ProductService()
