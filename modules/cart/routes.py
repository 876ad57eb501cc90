"""
Cart Module - Routes
=====================
JSON API for the signed-in user's cart. Every response carries the expanded
cart (items with live product detail and the stored totals).
"""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from config.database import get_db
from common.exceptions import ValidationError
from modules.auth.deps import require_login
from modules.cart.service import cart_service, expand_cart

router = APIRouter(prefix="/api/cart", tags=["cart"])


# ==========================================
# Schemas
# ==========================================

class AddToCartRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: Optional[int] = Field(None, alias="productId")
    quantity: int = Field(1, ge=1)


class UpdateQuantityRequest(BaseModel):
    quantity: Optional[int] = None


def _cart_response(db: Session, cart, message: str = None) -> dict:
    body = {"success": True, "data": expand_cart(db, cart)}
    if message:
        body["message"] = message
    return body


# ==========================================
# 🛒 View Cart
# ==========================================

@router.get("")
async def get_cart(db: Session = Depends(get_db), user=Depends(require_login)):
    cart = cart_service.get_cart(db, user.id)
    db.commit()
    return _cart_response(db, cart)


# ==========================================
# ➕ Add Item
# ==========================================

@router.post("/add")
async def add_to_cart(body: AddToCartRequest, db: Session = Depends(get_db), user=Depends(require_login)):
    if not body.product_id:
        raise ValidationError("Product ID is required")
    cart = cart_service.add_to_cart(db, user.id, body.product_id, body.quantity)
    db.commit()
    return _cart_response(db, cart, "Item added to cart")


# ==========================================
# ➕➖ Update Quantity
# ==========================================

@router.put("/update/{product_id}")
async def update_cart_item(
    product_id: int,
    body: UpdateQuantityRequest,
    db: Session = Depends(get_db),
    user=Depends(require_login),
):
    cart = cart_service.update_quantity(db, user.id, product_id, body.quantity)
    db.commit()
    return _cart_response(db, cart, "Cart updated")


# ==========================================
# 🗑️ Remove / Clear
# ==========================================

@router.delete("/remove/{product_id}")
async def remove_from_cart(product_id: int, db: Session = Depends(get_db), user=Depends(require_login)):
    cart = cart_service.remove_from_cart(db, user.id, product_id)
    db.commit()
    return _cart_response(db, cart, "Item removed from cart")


@router.delete("/clear")
async def clear_cart(db: Session = Depends(get_db), user=Depends(require_login)):
    cart = cart_service.clear_cart(db, user.id)
    db.commit()
    return _cart_response(db, cart, "Cart cleared")
