"""
============================================================================
EWM Stock Lookup - Services Layer
============================================================================

Request translation and authorization pipeline for WarehousePhysicalStock
reads against SAP EWM.

============================================================================
"""

from services.stock_models import (
    Predicate,
    Principal,
    StockErrorKind,
    StockPage,
    StockQuery,
    StockRecord,
    StockServiceError,
)

from services.filter_compiler import (
    DENIED,
    compile_filter,
    escape_literal,
)

from services.query_parser import (
    build_stock_query,
    parse_filter,
)

from services.stock_config import (
    StockServiceConfig,
    StockConfigurationError,
    get_stock_config,
)

from services.destinations import (
    Connection,
    DestinationResolver,
    EnvironmentDestinationResolver,
    TransportResponse,
    UpstreamHTTPError,
)

from services.stock_gateway import RemoteStockGateway

from services.stock_orchestrator import StockOrchestrator

__all__ = [
    # Models
    "Predicate",
    "Principal",
    "StockErrorKind",
    "StockPage",
    "StockQuery",
    "StockRecord",
    "StockServiceError",
    # Filter
    "DENIED",
    "compile_filter",
    "escape_literal",
    "build_stock_query",
    "parse_filter",
    # Configuration
    "StockServiceConfig",
    "StockConfigurationError",
    "get_stock_config",
    # Upstream
    "Connection",
    "DestinationResolver",
    "EnvironmentDestinationResolver",
    "TransportResponse",
    "UpstreamHTTPError",
    "RemoteStockGateway",
    # Orchestration
    "StockOrchestrator",
]
