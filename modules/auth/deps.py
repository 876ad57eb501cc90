"""
Auth Module - Dependencies
===========================
FastAPI dependencies for user authentication and authorization.
These are injected into route handlers via Depends().
"""

from fastapi import Request, Depends
from sqlalchemy.orm import Session

from config.database import get_db
from common.exceptions import AuthenticationError
from common.security import decode_token, extract_bearer_token
from common.helpers import safe_int
from modules.user.models import User


def get_current_active_user(request: Request, db: Session = Depends(get_db)):
    """
    Identify the current user from the Authorization bearer token.
    Returns User object or None.
    """
    token = extract_bearer_token(request)
    if not token:
        return None

    payload = decode_token(token)
    if not payload:
        return None

    user_id = safe_int(payload.get("sub"))
    if user_id is None:
        return None

    return db.query(User).filter(User.id == user_id, User.is_active == True).first()


def require_login(user=Depends(get_current_active_user)):
    """Require any authenticated active user. Raises 401 if not logged in."""
    if not user:
        raise AuthenticationError("Not authorized, invalid or missing token")
    return user
