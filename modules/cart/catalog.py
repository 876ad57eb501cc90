"""
Cart Module - Catalog Lookup
==============================
The cart's read-only view of the product catalog: current price and stock.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from modules.catalog.models import Product


@dataclass(frozen=True)
class CatalogEntry:
    product_id: int
    price: Decimal
    stock: int


class ProductCatalogLookup:
    """Reads price and stock from the products table."""

    def get(self, db: Session, product_id: int) -> Optional[CatalogEntry]:
        row = (
            db.query(Product.id, Product.price, Product.stock)
            .filter(Product.id == product_id)
            .first()
        )
        if row is None:
            return None
        return CatalogEntry(product_id=row.id, price=Decimal(row.price), stock=row.stock or 0)
