"""
Cart Module - Service Layer
==============================
One cart mutation per call: load (or lazily create) the user's cart, check the
request against current catalog price and stock, apply the change, persist,
and hand back the cart for expansion.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from common.exceptions import (
    ValidationError, ProductNotFoundError, CartNotFoundError,
    ItemNotFoundError, InsufficientStockError,
)
from common.helpers import money_float, isoformat
from modules.cart.catalog import CatalogEntry, ProductCatalogLookup
from modules.cart.models import Cart
from modules.cart.repository import CartRepository
from modules.catalog.service import product_service

logger = logging.getLogger("vibecart.cart")


class CartService:

    def __init__(self, catalog=None, repository: CartRepository = None):
        self.catalog = catalog or ProductCatalogLookup()
        self.repository = repository or CartRepository()

    def get_cart(self, db: Session, user_id: int) -> Cart:
        """Return the user's cart, creating an empty one on first access."""
        return self._get_or_create_cart(db, user_id)

    def add_to_cart(self, db: Session, user_id: int, product_id: int, quantity: int = 1) -> Cart:
        """
        Add `quantity` of a product, merging with an existing line.

        Stock is checked against the requested quantity only, not the merged
        line total.

        Raises:
            ProductNotFoundError, InsufficientStockError
        """
        entry = self._require_product(db, product_id)
        if entry.stock < quantity:
            raise InsufficientStockError(entry.stock)

        cart = self._get_or_create_cart(db, user_id)
        cart.add_item(product_id, quantity, entry.price)
        self.repository.save(db, cart)
        logger.info("Cart %s: added product=%s qty=%s", cart.id, product_id, quantity)
        return cart

    def update_quantity(self, db: Session, user_id: int, product_id: int, quantity: Optional[int]) -> Cart:
        """
        Set the quantity of an existing line. Zero removes it.

        Raises:
            ValidationError, ProductNotFoundError, InsufficientStockError,
            CartNotFoundError, ItemNotFoundError
        """
        if quantity is None or quantity < 0:
            raise ValidationError("Valid quantity is required")

        entry = self._require_product(db, product_id)
        if quantity > entry.stock:
            raise InsufficientStockError(entry.stock)

        cart = self._require_cart(db, user_id)
        if not cart.has_item(product_id):
            raise ItemNotFoundError()

        cart.update_item_quantity(product_id, quantity)
        self.repository.save(db, cart)
        logger.info("Cart %s: product=%s set to qty=%s", cart.id, product_id, quantity)
        return cart

    def remove_from_cart(self, db: Session, user_id: int, product_id: int) -> Cart:
        """Remove a line; removing an absent product still succeeds."""
        cart = self._require_cart(db, user_id)
        cart.remove_item(product_id)
        self.repository.save(db, cart)
        return cart

    def clear_cart(self, db: Session, user_id: int) -> Cart:
        cart = self._require_cart(db, user_id)
        cart.clear()
        self.repository.save(db, cart)
        logger.info("Cart %s cleared", cart.id)
        return cart

    # ==========================================
    # Private helpers
    # ==========================================

    def _require_product(self, db: Session, product_id: int) -> CatalogEntry:
        entry = self.catalog.get(db, product_id)
        if entry is None:
            raise ProductNotFoundError()
        return entry

    def _require_cart(self, db: Session, user_id: int) -> Cart:
        cart = self.repository.load(db, user_id)
        if cart is None:
            raise CartNotFoundError()
        return cart

    def _get_or_create_cart(self, db: Session, user_id: int) -> Cart:
        cart = self.repository.load(db, user_id)
        if cart is None:
            cart = self.repository.create(db, user_id)
        return cart


def expand_cart(db: Session, cart: Cart) -> dict:
    """
    Cart as JSON with each line's live product detail attached.
    A line whose product no longer exists gets `product: None`; its snapshot
    price is kept as-is.
    """
    items = cart.ordered_items
    products = product_service.get_many(db, [it.product_id for it in items])
    return {
        "id": cart.id,
        "user": cart.user_id,
        "items": [
            {
                "productId": it.product_id,
                "product": products[it.product_id].to_dict() if it.product_id in products else None,
                "quantity": it.quantity,
                "price": money_float(it.unit_price),
            }
            for it in items
        ],
        "totalItems": cart.total_items,
        "totalPrice": money_float(cart.total_price),
        "createdAt": isoformat(cart.created_at),
        "updatedAt": isoformat(cart.updated_at),
    }


# Singleton
cart_service = CartService()
