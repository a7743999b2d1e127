"""
Security: JWT handling for the identity layer.
Tokens are issued by the account service; the catalog only verifies them and
reads the subject (user id) and role claims.
"""

from datetime import datetime, timezone, timedelta
from typing import Any

from jose import JWTError, jwt

from marketplace.config import get_settings
from marketplace.core.permissions import ROLE_USER

settings = get_settings()


def create_access_token(subject: str | int, role: str = ROLE_USER, extra: dict[str, Any] | None = None) -> str:
    """Create JWT in the account service's format. Used by scripts and tests."""
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.jwt_expire_minutes)
    to_encode = {"sub": str(subject), "role": role, "exp": expire}
    if extra:
        to_encode.update(extra)
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict[str, Any] | None:
    """Decode and validate JWT. Returns payload or None if invalid."""
    try:
        return jwt.decode(
            token, settings.secret_key, algorithms=[settings.jwt_algorithm]
        )
    except JWTError:
        return None
