"""
Security utilities.

Bearer token extraction and local verification of Supabase-issued JWTs
using python-jose.
"""

import logging
from typing import Any, Dict, Optional

from jose import ExpiredSignatureError, JWTError, jwt

from .config import get_settings
from .errors import UnauthorizedError

logger = logging.getLogger(__name__)

# Supabase signs access tokens with the project JWT secret
ALGORITHM = "HS256"


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """
    Extract the token from an ``Authorization: Bearer <token>`` header.

    Returns None when the header is missing or not exactly two parts with
    the ``Bearer`` scheme.
    """
    if not authorization:
        return None

    parts = authorization.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer" or not parts[1]:
        return None

    return parts[1]


def verify_token(token: str) -> Dict[str, Any]:
    """
    Verify and decode a Supabase access token.

    Args:
        token: Encoded JWT

    Returns:
        Decoded claims

    Raises:
        UnauthorizedError: if the token is expired or malformed
    """
    settings = get_settings()

    try:
        return jwt.decode(
            token,
            settings.supabase_jwt_secret,
            algorithms=[ALGORITHM],
            audience=settings.supabase_jwt_audience,
        )
    except ExpiredSignatureError:
        logger.warning("Rejected expired token")
        raise UnauthorizedError("Token has expired")
    except JWTError as e:
        logger.warning(f"Rejected invalid token: {e}")
        raise UnauthorizedError("Invalid token format")
