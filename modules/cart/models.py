"""
Cart Module - Models
=====================
One cart per user. Items are keyed by product id and carry the unit price
captured when the line was first added. Totals are stored on the cart and
recomputed by every mutating method.
"""

from decimal import Decimal

from sqlalchemy import (
    Column, Integer, Numeric, ForeignKey, DateTime,
    UniqueConstraint, CheckConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.orm.collections import attribute_keyed_dict
from sqlalchemy.sql import func
from config.database import Base
from config.settings import CART_MAX_ITEM_QUANTITY
from common.exceptions import ItemNotFoundError
from common.helpers import to_money


class Cart(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    total_items = Column(Integer, default=0, server_default="0", nullable=False)
    total_price = Column(Numeric(14, 2), default=0, server_default="0", nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=True)

    user = relationship("User", foreign_keys=[user_id])
    items = relationship(
        "CartItem",
        back_populates="cart",
        collection_class=attribute_keyed_dict("product_id"),
        order_by="CartItem.id",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint("total_items >= 0", name="ck_cart_total_items"),
    )

    def __init__(self, **kwargs):
        kwargs.setdefault("total_items", 0)
        kwargs.setdefault("total_price", Decimal("0.00"))
        super().__init__(**kwargs)

    # ==========================================
    # Aggregate operations
    # ==========================================

    def add_item(self, product_id: int, quantity: int, unit_price) -> "CartItem":
        """
        Merge into an existing line or append a new one.
        Quantities are clamped to CART_MAX_ITEM_QUANTITY; an existing line keeps its price.
        """
        item = self.items.get(product_id)
        if item is not None:
            item.quantity = min(item.quantity + quantity, CART_MAX_ITEM_QUANTITY)
        else:
            item = CartItem(
                product_id=product_id,
                quantity=max(1, min(quantity, CART_MAX_ITEM_QUANTITY)),
                unit_price=to_money(unit_price),
            )
            self.items[product_id] = item
        self.recalculate()
        return item

    def update_item_quantity(self, product_id: int, quantity: int):
        """Set a line's quantity. Zero or less removes the line."""
        if quantity <= 0:
            self.items.pop(product_id, None)
        else:
            item = self.items.get(product_id)
            if item is None:
                raise ItemNotFoundError()
            item.quantity = min(quantity, CART_MAX_ITEM_QUANTITY)
        self.recalculate()

    def remove_item(self, product_id: int):
        self.items.pop(product_id, None)
        self.recalculate()

    def clear(self):
        self.items.clear()
        self.recalculate()

    def has_item(self, product_id: int) -> bool:
        return product_id in self.items

    def recalculate(self):
        """Recompute total_items and total_price from the current lines."""
        self.total_items = sum(item.quantity for item in self.items.values())
        self.total_price = to_money(
            sum((item.line_total for item in self.items.values()), Decimal("0"))
        )

    @property
    def ordered_items(self) -> list:
        """Lines in insertion order (new lines have no id until flushed)."""
        return list(self.items.values())

    def __repr__(self):
        return f"<Cart user={self.user_id} items={self.total_items}>"


class CartItem(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True)
    cart_id = Column(Integer, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False)
    # Weak reference: deleting a product leaves the line and its snapshot price intact
    product_id = Column(Integer, nullable=False, index=True)
    quantity = Column(Integer, default=1, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)

    cart = relationship("Cart", back_populates="items")

    __table_args__ = (
        UniqueConstraint("cart_id", "product_id", name="uq_cart_product"),
        CheckConstraint("quantity >= 1", name="ck_cart_qty"),
        CheckConstraint(f"quantity <= {CART_MAX_ITEM_QUANTITY}", name="ck_cart_qty_max"),
        CheckConstraint("unit_price >= 0", name="ck_cart_unit_price"),
    )

    @property
    def line_total(self) -> Decimal:
        return Decimal(self.unit_price) * self.quantity

    def __repr__(self):
        return f"<CartItem product={self.product_id} x{self.quantity}>"
