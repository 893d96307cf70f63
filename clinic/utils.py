import jwt
from datetime import datetime, timedelta, timezone
from typing import Optional

from .config import settings
from .exceptions import ValidationError


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def local_now() -> datetime:
    """Wall-clock time of the clinic, timezone-aware. Slot times are local."""
    return datetime.now().astimezone()


def _secret_configured() -> bool:
    return bool(settings.SECRET_KEY) and settings.SECRET_KEY != "change-me-in-prod"


# =========================
# JWT Token Handling
# =========================
def create_jwt_token(data: dict, expires_minutes: Optional[int] = None) -> str:
    """Create a JWT access token.

    Tokens are normally minted by the authentication service; this helper
    exists for local tooling and tests that need a signed actor.
    """
    to_encode = data.copy()
    minutes = expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES
    expire = utc_now() + timedelta(minutes=minutes)
    to_encode.update({"exp": expire, "type": "access"})

    # Ensure SECRET_KEY is properly set
    if not _secret_configured():
        raise ValueError("SECRET_KEY not properly configured")

    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_jwt_token(token: str) -> Optional[dict]:
    """Decode and verify JWT token"""
    if not _secret_configured():
        return None
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None


def parse_date(value: str, field: str):
    """Parse YYYY-MM-DD or raise a field-specific validation error."""
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field} format. Use YYYY-MM-DD", field=field)
