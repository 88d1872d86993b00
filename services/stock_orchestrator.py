"""
============================================================================
EWM Stock Lookup - Request Orchestrator
============================================================================

Per-request handler for WarehousePhysicalStock reads.

STATE MACHINE (no cross-request state):
    START -> AUTHORIZE -> EXTRACT -> COMPILE
          -> DENIED: raise NO_AUTHORIZATION / FORBIDDEN_TYPE (terminal)
          -> CALL_GATEWAY -> failure: raise classified error (terminal)
          -> NORMALIZE -> RESPOND (terminal)

A denied filter never reaches the gateway: exactly one upstream call is
made per request that passes authorization, and none otherwise.

Authorization enforcement is an explicit constructor flag. The gateway is
injected; the orchestrator never looks up or caches connections itself.

============================================================================
"""

import logging
import uuid
from typing import Optional

from services import filter_extractor, response_normalizer, stock_authorization
from services.filter_compiler import DENIED, compile_filter
from services.stock_gateway import RemoteStockGateway
from services.stock_models import (
    Principal,
    StockErrorKind,
    StockPage,
    StockQuery,
    StockServiceError,
)

# Configure module logger
logger = logging.getLogger(__name__)


MSG_NO_AUTHORIZATION = "You are not authorized to view any stock type."
MSG_FORBIDDEN_TYPE = "You are not authorized to view stock type '{stock_type}'."


class StockOrchestrator:
    """
    Sequences authorize -> extract -> compile -> fetch -> normalize.
    """

    def __init__(
        self,
        gateway: RemoteStockGateway,
        api_path: str,
        enforce_authorization: bool = True
    ):
        self.gateway = gateway
        self.api_path = api_path
        self.enforce_authorization = enforce_authorization

        if not enforce_authorization:
            logger.warning(
                "[STOCK-ORCH] Orchestrator created with stock type authorization DISABLED"
            )

    async def read(
        self,
        query: StockQuery,
        principal: Optional[Principal],
        correlation_id: Optional[str] = None
    ) -> StockPage:
        """
        Handle one WarehousePhysicalStock read.

        Returns:
            Normalized page of stock records with total count

        Raises:
            StockServiceError: Denied authorization or classified upstream failure
        """
        correlation_id = correlation_id or str(uuid.uuid4())
        user_id = principal.id if principal else None

        logger.info(
            f"[STOCK-ORCH] Processing READ request | user={user_id} | "
            f"limit={query.limit} | offset={query.offset} | correlation_id={correlation_id}"
        )

        authorized_types = stock_authorization.resolve(principal)
        filters = filter_extractor.extract(query)

        filter_expression = compile_filter(
            filters,
            authorized_types,
            enforce_authorization=self.enforce_authorization,
        )

        if filter_expression is DENIED:
            if not authorized_types:
                error = StockServiceError(StockErrorKind.NO_AUTHORIZATION, MSG_NO_AUTHORIZATION)
            else:
                error = StockServiceError(
                    StockErrorKind.FORBIDDEN_TYPE,
                    MSG_FORBIDDEN_TYPE.format(stock_type=filters.get("EWMStockType")),
                )
            logger.warning(
                f"[STOCK-ORCH] Request denied | kind={error.kind.value} | user={user_id} | "
                f"correlation_id={correlation_id}"
            )
            raise error

        logger.info(f"[STOCK-ORCH] Filter: {filter_expression} | correlation_id={correlation_id}")

        payload = await self.gateway.fetch(
            self.api_path,
            filter_expression,
            query.limit,
            query.offset,
            correlation_id=correlation_id,
        )

        try:
            page = response_normalizer.normalize(payload, query.offset)
        except Exception as e:
            logger.exception(f"[STOCK-ORCH] Normalization failed | correlation_id={correlation_id}")
            raise StockServiceError(StockErrorKind.INTERNAL_ERROR, f"Error: {e}")

        logger.info(
            f"[STOCK-ORCH] READ completed | records={len(page.records)} | "
            f"total={page.total_count} | correlation_id={correlation_id}"
        )
        return page
