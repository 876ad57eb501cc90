"""
Cart Module - Repository
==========================
Persistence for carts. Flushes only; the request handler owns the commit.
"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from modules.cart.models import Cart

logger = logging.getLogger("vibecart.cart")


class CartRepository:

    def load(self, db: Session, user_id: int) -> Optional[Cart]:
        return (
            db.query(Cart)
            .options(selectinload(Cart.items))
            .filter(Cart.user_id == user_id)
            .first()
        )

    def create(self, db: Session, user_id: int) -> Cart:
        """
        Insert an empty cart for the user.
        If a concurrent request created it first, only the insert is rolled
        back and the existing cart is returned.
        """
        cart = Cart(user_id=user_id)
        try:
            # Savepoint: a lost race must not discard the caller's pending work
            with db.begin_nested():
                db.add(cart)
                db.flush()
        except IntegrityError:
            existing = self.load(db, user_id)
            if existing is None:
                raise
            logger.info("Cart for user=%s created concurrently, reusing id=%s", user_id, existing.id)
            return existing
        db.refresh(cart)
        logger.info("Cart created: id=%s user=%s", cart.id, user_id)
        return cart

    def save(self, db: Session, cart: Cart) -> Cart:
        db.flush()
        db.refresh(cart)
        return cart
