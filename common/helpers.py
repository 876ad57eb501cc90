"""
VibeCart - Shared Helpers
==========================
Pure utility functions with NO database or module dependencies.
"""

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional

_CENT = Decimal("0.01")


def now_utc() -> datetime:
    """Returns current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


def safe_int(value: Optional[str]) -> Optional[int]:
    """Safely convert a string to int. Returns None on failure."""
    if value is None:
        return None
    try:
        return int(str(value).strip())
    except (ValueError, TypeError):
        return None


def safe_decimal(value, default: Optional[Decimal] = None) -> Optional[Decimal]:
    """Safely convert a value to Decimal. Returns default on failure."""
    if value is None or value == "":
        return default
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        return default
    return result if result.is_finite() else default


def to_money(value) -> Decimal:
    """Quantize a price-like value to two decimal places."""
    return Decimal(str(value or 0)).quantize(_CENT, rounding=ROUND_HALF_UP)


def money_float(value) -> float:
    """Decimal → float for JSON responses."""
    return float(to_money(value))


def isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def get_real_ip(request) -> str:
    """Extract real client IP from request (handles X-Forwarded-For proxy header)."""
    x_forwarded = request.headers.get("X-Forwarded-For")
    if x_forwarded:
        return x_forwarded.split(",")[0].strip()
    return request.client.host if request.client else "-"
