"""
VibeCart - Security Utilities
==============================
JWT tokens, password hashing, and bearer-token extraction.
"""

import base64
import hashlib
import hmac
import logging
import secrets
from datetime import timedelta
from typing import Optional

from fastapi import Request
from jose import jwt, JWTError

from config.settings import (
    SECRET_KEY, ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES,
    PASSWORD_HASH_ITERATIONS,
)
from common.helpers import now_utc

logger = logging.getLogger("vibecart.security")

_HASH_SCHEME = "pbkdf2_sha256"


# ==========================================
# Passwords
# ==========================================

def _b64(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii").rstrip("=")


def hash_password(password: str, salt: str = None) -> str:
    """
    Hash a password with salted PBKDF2-HMAC-SHA256.
    Stored format: pbkdf2_sha256$<iterations>$<salt>$<hash>
    """
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt.encode("utf-8"), PASSWORD_HASH_ITERATIONS,
    )
    return f"{_HASH_SCHEME}${PASSWORD_HASH_ITERATIONS}${salt}${_b64(digest)}"


def verify_password(password: str, stored: str) -> bool:
    """Constant-time check of a password against a stored hash."""
    try:
        scheme, iterations, salt, expected = stored.split("$", 3)
    except (ValueError, AttributeError):
        return False
    if scheme != _HASH_SCHEME:
        return False
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt.encode("utf-8"), int(iterations),
    )
    return hmac.compare_digest(_b64(digest), expected)


# ==========================================
# JWT Tokens
# ==========================================

def create_token(data: dict, expires_minutes: int = ACCESS_TOKEN_EXPIRE_MINUTES) -> str:
    """Create a signed JWT carrying `data` plus an expiry claim."""
    to_encode = data.copy()
    to_encode["exp"] = now_utc() + timedelta(minutes=expires_minutes)
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def create_user_token(user_id: int) -> str:
    return create_token({"sub": str(user_id)})


def decode_token(token: str) -> Optional[dict]:
    """Decode a JWT token. Returns payload or None."""
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.debug("Rejected token: %s", e)
        return None


def extract_bearer_token(request: Request) -> Optional[str]:
    """Return the token from an `Authorization: Bearer <token>` header, if any."""
    header = request.headers.get("Authorization")
    if not header:
        return None
    parts = header.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1]
    return None
