"""
============================================================================
EWM Stock Lookup - Core Data Models
============================================================================

Traceability: All request-scoped operations carry a correlation_id

This module defines the value objects passed between the stock read
pipeline stages:
- Predicate: Typed (field, operator, value) triple from the query parser
- StockQuery: Incoming structured read request
- Principal: Authenticated caller and its attribute bag
- StockRecord / StockPage: Normalized response shape
- StockErrorKind / StockServiceError: Local error taxonomy

ERROR KINDS (local HTTP status):
    - NO_AUTHORIZATION: 403
    - FORBIDDEN_TYPE: 403
    - UPSTREAM_UNAVAILABLE: 502
    - UPSTREAM_AUTH_FAILED: 401
    - UPSTREAM_NOT_FOUND: 404
    - UPSTREAM_UNREACHABLE: 503
    - UPSTREAM_ERROR: upstream status passthrough
    - INTERNAL_ERROR: 500

============================================================================
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional
import logging

# Configure module logger
logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

# Upstream entity fields the UI may filter on
FILTERABLE_FIELDS = (
    "Product",
    "EWMStockType",
    "Batch",
    "HandlingUnitNumber",
    "EWMStorageBin",
)

# Name of the principal attribute holding the stock-type entitlement
STOCK_TYPE_ATTRIBUTE = "StockType"

DEFAULT_LIMIT = 100
DEFAULT_OFFSET = 0


# =============================================================================
# Error Taxonomy
# =============================================================================

class StockErrorKind(str, Enum):
    """
    Classified failure kinds of the stock read pipeline.
    """
    NO_AUTHORIZATION = "NO_AUTHORIZATION"
    FORBIDDEN_TYPE = "FORBIDDEN_TYPE"
    UPSTREAM_UNAVAILABLE = "UPSTREAM_UNAVAILABLE"
    UPSTREAM_AUTH_FAILED = "UPSTREAM_AUTH_FAILED"
    UPSTREAM_NOT_FOUND = "UPSTREAM_NOT_FOUND"
    UPSTREAM_UNREACHABLE = "UPSTREAM_UNREACHABLE"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# Local HTTP status per kind; UPSTREAM_ERROR passes an upstream 4xx/5xx status through
LOCAL_STATUS_BY_KIND: Dict[StockErrorKind, int] = {
    StockErrorKind.NO_AUTHORIZATION: 403,
    StockErrorKind.FORBIDDEN_TYPE: 403,
    StockErrorKind.UPSTREAM_UNAVAILABLE: 502,
    StockErrorKind.UPSTREAM_AUTH_FAILED: 401,
    StockErrorKind.UPSTREAM_NOT_FOUND: 404,
    StockErrorKind.UPSTREAM_UNREACHABLE: 503,
    StockErrorKind.UPSTREAM_ERROR: 502,
    StockErrorKind.INTERNAL_ERROR: 500,
}


class StockServiceError(Exception):
    """
    Exception raised when a stock read cannot be completed.

    Every failure of the pipeline is resolved to exactly one
    StockErrorKind before it reaches the HTTP layer.

    Attributes:
        kind: Classified failure kind
        message: Human-readable message returned to the client
        upstream_status: HTTP status reported by EWM, if any
        status_code: Local HTTP status surfaced to the caller
    """

    def __init__(
        self,
        kind: StockErrorKind,
        message: str,
        upstream_status: Optional[int] = None
    ):
        self.kind = kind
        self.message = message
        self.upstream_status = upstream_status

        if kind == StockErrorKind.UPSTREAM_ERROR and upstream_status and upstream_status >= 400:
            self.status_code = upstream_status
        else:
            self.status_code = LOCAL_STATUS_BY_KIND[kind]

        super().__init__(f"[{kind.value}] {message}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_code": self.kind.value,
            "message": self.message,
            "upstream_status": self.upstream_status,
        }


# =============================================================================
# Request Models
# =============================================================================

@dataclass(frozen=True)
class Predicate:
    """
    One (field, operator, literal) triple of an incoming $filter.

    value is None when the literal was undefined (OData null).
    """
    field: str
    operator: str
    value: Optional[str] = None


@dataclass
class StockQuery:
    """
    Incoming structured read request.

    Input Constraints: limit and offset must be non-negative integers
    """
    predicates: List[Predicate] = field(default_factory=list)
    limit: int = DEFAULT_LIMIT
    offset: int = DEFAULT_OFFSET

    def __post_init__(self) -> None:
        if self.limit is None:
            self.limit = DEFAULT_LIMIT
        if self.offset is None:
            self.offset = DEFAULT_OFFSET

        if int(self.limit) < 0:
            raise ValueError(f"limit must be non-negative, got: {self.limit}")
        if int(self.offset) < 0:
            raise ValueError(f"offset must be non-negative, got: {self.offset}")

        self.limit = int(self.limit)
        self.offset = int(self.offset)


@dataclass(frozen=True)
class Principal:
    """
    Authenticated caller of a single request.

    attributes is the raw attribute bag handed over by the authentication
    layer; the stock-type entitlement lives under STOCK_TYPE_ATTRIBUTE and
    may be absent, a single string or a collection.
    """
    id: str
    attributes: Dict[str, Any] = field(default_factory=dict)


# =============================================================================
# Response Models
# =============================================================================

@dataclass
class StockRecord:
    """
    One normalized inventory line of the local WarehousePhysicalStock entity.
    """
    id: str
    product: str = ""
    warehouse: str = ""
    stock_type: str = ""
    batch: str = ""
    handling_unit_number: str = ""
    storage_bin: str = ""
    quantity: float = 0.0
    quantity_unit: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize under the local entity field names.
        """
        return {
            "id": self.id,
            "product": self.product,
            "warehouse": self.warehouse,
            "stockType": self.stock_type,
            "batch": self.batch,
            "handlingUnitNumber": self.handling_unit_number,
            "storageBin": self.storage_bin,
            "quantity": self.quantity,
            "quantityUnit": self.quantity_unit,
        }


@dataclass
class StockPage:
    """
    One page of stock records plus the upstream-reported total count.

    total_count is normally >= len(records); the upstream system defines
    the exceptions.
    """
    records: List[StockRecord] = field(default_factory=list)
    total_count: int = 0

    def __len__(self) -> int:
        return len(self.records)
