"""
Auth Module - Service Layer
=============================
Business logic for registration, login, profile and password changes.
"""

import logging
from typing import Optional, Tuple

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from common.security import hash_password, verify_password, create_user_token
from common.exceptions import AuthenticationError, DuplicateError
from modules.user.models import User

logger = logging.getLogger("vibecart.auth")


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class AuthService:
    """Handles all authentication logic: signup, login, and token creation."""

    def get_by_email(self, db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == normalize_email(email)).first()

    def signup(self, db: Session, name: str, email: str, password: str) -> Tuple[User, str]:
        """
        Register a new user.

        Returns:
            (user, token)

        Raises:
            DuplicateError if the email is already registered
        """
        email = normalize_email(email)
        if self.get_by_email(db, email):
            raise DuplicateError("User with this email already exists")

        user = User(name=name.strip(), email=email, password_hash=hash_password(password))
        try:
            db.add(user)
            db.flush()
            db.refresh(user)
        except IntegrityError:
            # Race condition: another request registered this email
            db.rollback()
            raise DuplicateError("User with this email already exists")

        logger.info("New user registered: id=%s email=%s", user.id, email)
        return user, create_user_token(user.id)

    def login(self, db: Session, email: str, password: str) -> Tuple[User, str]:
        """
        Verify credentials.

        Raises:
            AuthenticationError on unknown email, wrong password or inactive account
        """
        user = self.get_by_email(db, email)
        if not user:
            raise AuthenticationError("Invalid email or password")
        if not user.is_active:
            raise AuthenticationError("Account is deactivated")
        if not verify_password(password, user.password_hash):
            logger.info("Failed login for user id=%s", user.id)
            raise AuthenticationError("Invalid email or password")
        return user, create_user_token(user.id)

    def update_profile(self, db: Session, user: User, name: str = None, email: str = None) -> User:
        if email:
            email = normalize_email(email)
            if email != user.email:
                if self.get_by_email(db, email):
                    raise DuplicateError("Email already in use")
                user.email = email
        if name:
            user.name = name.strip()
        db.flush()
        return user

    def change_password(self, db: Session, user: User, current_password: str, new_password: str) -> str:
        """Replace the password after checking the current one. Returns a fresh token."""
        if not verify_password(current_password, user.password_hash):
            raise AuthenticationError("Current password is incorrect")
        user.password_hash = hash_password(new_password)
        db.flush()
        logger.info("Password changed for user id=%s", user.id)
        return create_user_token(user.id)


# Singleton instance
auth_service = AuthService()
