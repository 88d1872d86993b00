"""
============================================================================
EWM Stock Lookup - Request Principal
============================================================================

Input Constraints: Authorization header forwarded by the approuter
Side Effects: None (pure extraction)

The approuter in front of this service authenticates the user and forwards
"Authorization: Bearer <user_id>". The user's stock-type entitlement is
looked up in EWM_STOCK_TYPE_ASSIGNMENTS and placed in the principal's
attribute bag under "StockType".

A request without an Authorization header carries no principal; the
authorization resolver treats that as "view nothing".

============================================================================
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, Header, HTTPException

from services.stock_config import StockServiceConfig, get_stock_config
from services.stock_models import STOCK_TYPE_ATTRIBUTE, Principal

# Configure module logger
logger = logging.getLogger(__name__)


# ============================================================================
# CONSTANTS
# ============================================================================

BEARER_PREFIX = "Bearer "


# ============================================================================
# EXCEPTIONS
# ============================================================================

class PrincipalError(Exception):
    """
    Raised when an Authorization header is present but malformed.

    Error Codes:
        SEC-001: Invalid authorization format
        SEC-002: Empty user id
    """

    def __init__(self, error_code: str, message: str):
        self.error_code = error_code
        self.message = message
        super().__init__(f"[{error_code}] {message}")


# ============================================================================
# PRINCIPAL EXTRACTION
# ============================================================================

def parse_bearer_user(authorization: Optional[str]) -> Optional[str]:
    """
    Extract the user id from a "Bearer <user_id>" header.

    Returns:
        The user id, or None when no header was sent

    Raises:
        PrincipalError: If the header is present but malformed
    """
    if authorization is None or not authorization.strip():
        return None

    if not authorization.startswith(BEARER_PREFIX):
        raise PrincipalError(
            "SEC-001",
            "Invalid authorization format. Use: Bearer <user_id>"
        )

    user_id = authorization[len(BEARER_PREFIX):].strip()
    if not user_id:
        raise PrincipalError("SEC-002", "Empty user id in Bearer token")

    return user_id


def build_principal(user_id: Optional[str], config: StockServiceConfig) -> Optional[Principal]:
    """
    Build the request principal with its stock-type attribute.
    """
    if user_id is None:
        return None

    stock_types = config.stock_types_for(user_id)
    attributes = {STOCK_TYPE_ATTRIBUTE: sorted(stock_types)} if stock_types else {}
    return Principal(id=user_id, attributes=attributes)


# ============================================================================
# FASTAPI DEPENDENCIES
# ============================================================================

def get_config() -> StockServiceConfig:
    return get_stock_config()


def get_current_principal(
    authorization: Optional[str] = Header(None, description="Bearer <user_id>"),
    config: StockServiceConfig = Depends(get_config),
) -> Optional[Principal]:
    """
    Resolve the principal of the current request.

    Raises:
        HTTPException: 401 if the Authorization header is malformed
    """
    try:
        user_id = parse_bearer_user(authorization)
    except PrincipalError as e:
        logger.warning(f"[{e.error_code}] {e.message}")
        raise HTTPException(
            status_code=401,
            detail={
                "error_code": e.error_code,
                "message": e.message,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
        )

    return build_principal(user_id, config)
