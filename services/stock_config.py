"""
============================================================================
EWM Stock Lookup - Configuration
============================================================================

This module provides configuration management for the stock read service:
- Environment variable parsing with type safety
- Default values for optional configuration
- Validation of required configuration
- Explicit (never accidental) switch for stock-type authorization

ENVIRONMENT VARIABLES:
    - EWM_DESTINATION_NAME: Destination holding the EWM connection (default: EWM_HMF)
    - EWM_API_PATH: Path of the WarehousePhysicalStockProducts entity set
    - EWM_AUTHORIZATION_ENABLED: Enforce stock-type authorization (default: true)
    - EWM_DEFAULT_PAGE_SIZE: Rows requested when $top is omitted (default: 100)
    - EWM_REQUEST_TIMEOUT_SECONDS: Upstream HTTP timeout (default: 30)
    - EWM_STOCK_TYPE_ASSIGNMENTS: user=F1|F2,user2=Q4

ERROR CODES:
    - CFG-001: Configuration invalid

============================================================================
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional
import logging
import os

# Configure module logger
logger = logging.getLogger(__name__)


# =============================================================================
# Error Codes
# =============================================================================

class StockConfigErrorCode:
    """Configuration-specific error codes for audit logging."""
    CONFIG_INVALID = "CFG-001"


# =============================================================================
# Default Values
# =============================================================================

DEFAULT_DESTINATION_NAME = "EWM_HMF"

DEFAULT_EWM_API_PATH = (
    "/sap/opu/odata4/sap/api_whse_physstockprod/srvd_a2x/sap/"
    "whsephysicalstockproducts/0001/WarehousePhysicalStockProducts"
)

DEFAULT_AUTHORIZATION_ENABLED = True

DEFAULT_PAGE_SIZE = 100

DEFAULT_REQUEST_TIMEOUT_SECONDS = 30.0


# =============================================================================
# Configuration Exception
# =============================================================================

class StockConfigurationError(Exception):
    """
    Exception raised when the stock service configuration is invalid.
    """

    def __init__(self, message: str, error_code: str = StockConfigErrorCode.CONFIG_INVALID):
        self.error_code = error_code
        self.message = message
        super().__init__(f"[{error_code}] {message}")


# =============================================================================
# Helpers
# =============================================================================

def parse_stock_type_assignments(raw: str) -> Dict[str, FrozenSet[str]]:
    """
    Parse EWM_STOCK_TYPE_ASSIGNMENTS into user -> stock types.

    Format: comma-separated "user=TYPE|TYPE" entries. Entries without "="
    or with an empty user are skipped. A user listed twice keeps the union.

    Example:
        "u1=F2,u2=F1|Q4" -> {"u1": {"F2"}, "u2": {"F1", "Q4"}}
    """
    assignments: Dict[str, FrozenSet[str]] = {}

    if not raw or not raw.strip():
        return assignments

    for entry in raw.split(","):
        if "=" not in entry:
            if entry.strip():
                logger.warning(
                    f"[{StockConfigErrorCode.CONFIG_INVALID}] Ignoring stock type "
                    f"assignment without '=': {entry.strip()}"
                )
            continue

        user_id, types_str = entry.split("=", 1)
        user_id = user_id.strip()
        if not user_id:
            continue

        types = frozenset(t.strip() for t in types_str.split("|") if t.strip())
        assignments[user_id] = assignments.get(user_id, frozenset()) | types

    return assignments


def _read_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.lower().strip() in ("true", "1", "yes", "on")


# =============================================================================
# StockServiceConfig Class
# =============================================================================

@dataclass
class StockServiceConfig:
    """
    Stock read service configuration.

    ============================================================================
    CONFIGURATION PARAMETERS:
    ============================================================================
    - destination_name: Destination to resolve before each upstream call
    - api_path: Path of the upstream entity set
    - authorization_enabled: Whether stock-type authorization is enforced
    - default_page_size: $top sent upstream when the UI omits it
    - request_timeout_seconds: Upstream HTTP timeout
    - stock_type_assignments: user id -> authorized stock types
    ============================================================================
    """

    destination_name: str = DEFAULT_DESTINATION_NAME
    api_path: str = DEFAULT_EWM_API_PATH
    authorization_enabled: bool = DEFAULT_AUTHORIZATION_ENABLED
    default_page_size: int = DEFAULT_PAGE_SIZE
    request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    stock_type_assignments: Dict[str, FrozenSet[str]] = field(default_factory=dict)

    def stock_types_for(self, user_id: str) -> FrozenSet[str]:
        """
        Return the stock types assigned to a user (empty if unknown).
        """
        if not user_id or not user_id.strip():
            return frozenset()
        return self.stock_type_assignments.get(user_id.strip(), frozenset())

    def validate(self) -> None:
        """
        Validate configuration completeness.

        Raises:
            StockConfigurationError: If configuration is invalid (CFG-001)
        """
        errors: List[str] = []

        if not self.destination_name or not self.destination_name.strip():
            errors.append("EWM_DESTINATION_NAME must not be empty")

        if not self.api_path or not self.api_path.startswith("/"):
            errors.append(
                f"EWM_API_PATH must be an absolute path, got: {self.api_path!r}"
            )

        if self.default_page_size <= 0:
            errors.append(
                f"EWM_DEFAULT_PAGE_SIZE must be positive, got: {self.default_page_size}"
            )

        if self.request_timeout_seconds <= 0:
            errors.append(
                f"EWM_REQUEST_TIMEOUT_SECONDS must be positive, got: "
                f"{self.request_timeout_seconds}"
            )

        if errors:
            error_msg = "Stock service configuration validation failed: " + "; ".join(errors)
            logger.error(f"[{StockConfigErrorCode.CONFIG_INVALID}] {error_msg}")
            raise StockConfigurationError(error_msg)

        if not self.authorization_enabled:
            logger.warning(
                "[STOCK-CONFIG] Stock type authorization is DISABLED "
                "(EWM_AUTHORIZATION_ENABLED=false). All stock types are visible "
                "to every caller."
            )

        logger.info(
            f"[STOCK-CONFIG] Configuration validated | "
            f"destination={self.destination_name} | "
            f"authorization_enabled={self.authorization_enabled} | "
            f"default_page_size={self.default_page_size} | "
            f"timeout_seconds={self.request_timeout_seconds} | "
            f"assigned_users={len(self.stock_type_assignments)}"
        )

    @classmethod
    def from_environment(cls, validate: bool = True) -> "StockServiceConfig":
        """
        Load configuration from environment variables.

        Args:
            validate: Whether to validate configuration after loading (default: True)

        Returns:
            StockServiceConfig instance with values from environment

        Raises:
            StockConfigurationError: If configuration is invalid (CFG-001)
        """
        destination_name = os.environ.get(
            "EWM_DESTINATION_NAME", DEFAULT_DESTINATION_NAME
        ).strip()

        api_path = os.environ.get("EWM_API_PATH", DEFAULT_EWM_API_PATH).strip()

        authorization_enabled = _read_bool(
            "EWM_AUTHORIZATION_ENABLED", DEFAULT_AUTHORIZATION_ENABLED
        )

        page_size_str = os.environ.get("EWM_DEFAULT_PAGE_SIZE", str(DEFAULT_PAGE_SIZE))
        try:
            default_page_size = int(page_size_str.strip())
        except ValueError:
            logger.warning(
                f"[STOCK-CONFIG] Invalid EWM_DEFAULT_PAGE_SIZE value: {page_size_str}, "
                f"using default: {DEFAULT_PAGE_SIZE}"
            )
            default_page_size = DEFAULT_PAGE_SIZE

        timeout_str = os.environ.get(
            "EWM_REQUEST_TIMEOUT_SECONDS", str(DEFAULT_REQUEST_TIMEOUT_SECONDS)
        )
        try:
            request_timeout_seconds = float(timeout_str.strip())
        except ValueError:
            logger.warning(
                f"[STOCK-CONFIG] Invalid EWM_REQUEST_TIMEOUT_SECONDS value: {timeout_str}, "
                f"using default: {DEFAULT_REQUEST_TIMEOUT_SECONDS}"
            )
            request_timeout_seconds = DEFAULT_REQUEST_TIMEOUT_SECONDS

        stock_type_assignments = parse_stock_type_assignments(
            os.environ.get("EWM_STOCK_TYPE_ASSIGNMENTS", "")
        )

        logger.info(
            f"[STOCK-CONFIG] Loading configuration from environment | "
            f"EWM_DESTINATION_NAME={destination_name} | "
            f"EWM_AUTHORIZATION_ENABLED={authorization_enabled} | "
            f"EWM_DEFAULT_PAGE_SIZE={default_page_size} | "
            f"EWM_STOCK_TYPE_ASSIGNMENTS_COUNT={len(stock_type_assignments)}"
        )

        config = cls(
            destination_name=destination_name,
            api_path=api_path,
            authorization_enabled=authorization_enabled,
            default_page_size=default_page_size,
            request_timeout_seconds=request_timeout_seconds,
            stock_type_assignments=stock_type_assignments,
        )

        if validate:
            config.validate()

        return config

    def to_dict(self) -> dict:
        """
        Convert configuration to dictionary for serialization/logging.
        """
        return {
            "destination_name": self.destination_name,
            "api_path": self.api_path,
            "authorization_enabled": self.authorization_enabled,
            "default_page_size": self.default_page_size,
            "request_timeout_seconds": self.request_timeout_seconds,
            "assigned_users_count": len(self.stock_type_assignments),
        }


# =============================================================================
# Module-Level Configuration Instance
# =============================================================================

# Global configuration instance (lazy-loaded)
_config_instance: Optional[StockServiceConfig] = None


def get_stock_config(validate: bool = True) -> StockServiceConfig:
    """
    Get the global stock service configuration instance.

    Loads from environment variables on first access.

    Raises:
        StockConfigurationError: If configuration is invalid (CFG-001)
    """
    global _config_instance

    if _config_instance is None:
        _config_instance = StockServiceConfig.from_environment(validate=validate)

    return _config_instance


def reset_stock_config() -> None:
    """
    Reset the global configuration instance.

    Used by tests to reload configuration between cases.
    """
    global _config_instance
    _config_instance = None
    logger.debug("[STOCK-CONFIG] Configuration instance reset")
