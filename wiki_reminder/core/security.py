"""Security utilities: admin bearer tokens."""

from datetime import datetime, timedelta, timezone
import logging

import jwt
from pydantic import BaseModel

from .config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


# JWT Token handling
class TokenPayload(BaseModel):
    """JWT token payload."""

    sub: str  # Admin identifier
    email: str | None = None  # Recorded as the audit actor
    exp: datetime
    iat: datetime
    type: str = "access"


def create_access_token(
    email: str,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a JWT access token for an administrator."""
    now = datetime.now(timezone.utc)
    expire = now + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )

    payload = {
        "sub": email,
        "email": email,
        "exp": expire,
        "iat": now,
        "type": "access",
    }

    return jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)


def decode_token(token: str) -> TokenPayload | None:
    """Decode and validate a JWT token."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
        return TokenPayload(**payload)
    except jwt.ExpiredSignatureError:
        logger.debug("Rejected expired admin token")
        return None
    except jwt.InvalidTokenError:
        return None
