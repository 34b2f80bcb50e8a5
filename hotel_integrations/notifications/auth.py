"""Guest socket authentication."""

from typing import Any, Optional

import jwt
import structlog

from hotel_integrations.config import JWT_SECRET

logger = structlog.get_logger(__name__)

JWT_ALGORITHM = "HS256"


def decode_guest_token(token: str, secret: Optional[str] = None) -> Optional[dict[str, Any]]:
    """Decode a guest JWT; None if the signature, format or expiry is invalid."""
    try:
        return jwt.decode(token, secret or JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.info("guest_token_expired")
        return None
    except jwt.InvalidTokenError as e:
        logger.info("guest_token_invalid", error=str(e))
        return None


def token_matches_guest(token: str, guest_id: str, secret: Optional[str] = None) -> bool:
    """
    True if the token is valid and its subject is the claimed guest.

    The subject is read from the "id" claim, falling back to "sub".

    Args:
        token: Bearer JWT from the socket query string
        guest_id: guestId query parameter
        secret: Signing secret override (defaults to JWT_SECRET)
    """
    claims = decode_guest_token(token, secret)
    if not claims:
        return False
    subject = claims.get("id", claims.get("sub"))
    return subject is not None and str(subject) == str(guest_id)
