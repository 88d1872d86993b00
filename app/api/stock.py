"""
============================================================================
EWM Stock Lookup - WarehousePhysicalStock OData Endpoint
============================================================================

Input Constraints:
    - OData system query options $filter, $top, $skip, $count
    - Optional Authorization: Bearer <user_id>
Side Effects:
    - One upstream EWM call per authorized request
    - Prometheus counter update per request

ENDPOINTS:
    GET /odata/v4/stock/WarehousePhysicalStock - Read a page of stock

ERROR BODY:
    {"error_code": "<kind>", "message": "...", "timestamp": "<iso>"}

============================================================================
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from fastapi.responses import JSONResponse

from app.auth.principal import get_config, get_current_principal
from app.observability.metrics import record_stock_request
from services.destinations import EnvironmentDestinationResolver
from services.query_parser import build_stock_query
from services.stock_config import StockServiceConfig
from services.stock_gateway import RemoteStockGateway
from services.stock_models import Principal, StockServiceError
from services.stock_orchestrator import StockOrchestrator

# Configure module logger
logger = logging.getLogger(__name__)


# ============================================================================
# Router Configuration
# ============================================================================

router = APIRouter()

ENTITY_SET = "WarehousePhysicalStock"

CORRELATION_HEADER = "X-Correlation-ID"


# ============================================================================
# Orchestrator Dependency
# ============================================================================

_orchestrator: Optional[StockOrchestrator] = None


def create_orchestrator(config: StockServiceConfig) -> StockOrchestrator:
    """
    Wire the orchestrator with the environment destination resolver.
    """
    resolver = EnvironmentDestinationResolver(timeout=config.request_timeout_seconds)
    gateway = RemoteStockGateway(resolver, config.destination_name)
    return StockOrchestrator(
        gateway,
        api_path=config.api_path,
        enforce_authorization=config.authorization_enabled,
    )


def get_stock_orchestrator(
    config: StockServiceConfig = Depends(get_config),
) -> StockOrchestrator:
    """
    Get the process-wide orchestrator, creating it on first use.
    """
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = create_orchestrator(config)
    return _orchestrator


def reset_stock_orchestrator() -> None:
    global _orchestrator
    _orchestrator = None


# ============================================================================
# Endpoint
# ============================================================================

def _error_detail(error: StockServiceError) -> dict:
    return {
        "error_code": error.kind.value,
        "message": error.message,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get(
    f"/{ENTITY_SET}",
    summary="Read warehouse physical stock",
    description="Reads a page of EWM physical stock restricted to the caller's stock types.",
)
async def read_warehouse_physical_stock(
    filter_expression: Optional[str] = Query(None, alias="$filter"),
    top: Optional[int] = Query(None, alias="$top", ge=0),
    skip: Optional[int] = Query(None, alias="$skip", ge=0),
    count: Optional[str] = Query(None, alias="$count"),
    correlation_id: Optional[str] = Header(None, alias=CORRELATION_HEADER),
    principal: Optional[Principal] = Depends(get_current_principal),
    orchestrator: StockOrchestrator = Depends(get_stock_orchestrator),
    config: StockServiceConfig = Depends(get_config),
):
    """
    OData read of the WarehousePhysicalStock entity set.

    @odata.count is always returned, whether or not $count was requested.

    Raises:
        HTTPException: Classified failure with the local status code
    """
    correlation_id = correlation_id or str(uuid.uuid4())

    query = build_stock_query(
        filter_expression,
        top=top,
        skip=skip,
        default_limit=config.default_page_size,
    )

    try:
        page = await orchestrator.read(query, principal, correlation_id=correlation_id)
    except StockServiceError as e:
        record_stock_request(e.kind.value, correlation_id)
        raise HTTPException(
            status_code=e.status_code,
            detail=_error_detail(e),
            headers={CORRELATION_HEADER: correlation_id},
        )

    record_stock_request("ok", correlation_id)

    return JSONResponse(
        content={
            "@odata.context": f"$metadata#{ENTITY_SET}",
            "@odata.count": page.total_count,
            "value": [record.to_dict() for record in page.records],
        },
        headers={CORRELATION_HEADER: correlation_id},
    )
