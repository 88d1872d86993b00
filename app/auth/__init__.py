# ============================================================================
# EWM Stock Lookup
# Authentication Module
# ============================================================================

from app.auth.principal import get_current_principal, build_principal, PrincipalError

__all__ = ["get_current_principal", "build_principal", "PrincipalError"]
