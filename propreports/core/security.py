"""
Session Boundary
Verifies the Supabase-issued access token and reads the landlord id from it.
"""
from jose import jwt, JWTError
import logging
import uuid
from typing import Any, Dict, Optional

from propreports.core.config import settings

logger = logging.getLogger(__name__)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Return the verified claims, or None if the token is invalid or expired."""
    try:
        return jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
        )
    except JWTError as e:
        logger.warning(f"JWT decode error: {e}")
        return None


def landlord_id_from_claims(claims: Dict[str, Any]) -> Optional[uuid.UUID]:
    # Supabase stores the auth user id in "sub"
    subject = claims.get("sub")
    if not subject:
        logger.warning("Token missing 'sub' field")
        return None
    try:
        return uuid.UUID(str(subject))
    except ValueError:
        logger.warning(f"Token 'sub' is not a UUID: {subject}")
        return None
