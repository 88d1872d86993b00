"""
============================================================================
EWM Stock Lookup - Remote Stock Gateway
============================================================================

Issues the outbound paginated, filtered read against the EWM OData v4 API
through an injected DestinationResolver, and classifies every failure into
a StockErrorKind.

WIRE SHAPE:
    GET <api_path>?$count=true&$top=<n>&$skip=<m>[&$filter=<expr>]
    Accept: application/json

FAILURE CLASSIFICATION:
    - destination missing           -> UPSTREAM_UNAVAILABLE
    - HTTP 401 / 403                -> UPSTREAM_AUTH_FAILED
    - HTTP 404                      -> UPSTREAM_NOT_FOUND
    - other 4xx / 5xx               -> UPSTREAM_ERROR (status + message)
    - 1xx / 3xx                     -> UPSTREAM_ERROR (502)
    - 2xx without a JSON body       -> UPSTREAM_ERROR (502)
    - DNS / refused / connect fail  -> UPSTREAM_UNREACHABLE
    - anything else                 -> INTERNAL_ERROR

One attempt per call. No retries.

============================================================================
"""

import logging
import socket
import time
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from app.observability.metrics import record_upstream_call
from services.destinations import DestinationResolver, UpstreamHTTPError
from services.stock_models import StockErrorKind, StockServiceError

# Configure module logger
logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

REQUEST_HEADERS = {"Accept": "application/json"}

MSG_UNAVAILABLE = "EWM destination '{name}' is not configured or could not be resolved."
MSG_AUTH_FAILED = "Authentication failed. Check destination credentials."
MSG_NOT_FOUND = "API endpoint not found."
MSG_UNREACHABLE = "EWM system is unreachable."
MSG_UNEXPECTED_RESPONSE = "Unexpected API response"

# Network-level failures: name resolution, refused or failed connects
UNREACHABLE_ERRORS = (
    httpx.ConnectError,
    httpx.ConnectTimeout,
    ConnectionError,
    socket.gaierror,
)


# =============================================================================
# Helpers
# =============================================================================

def _encode_key(key: str) -> str:
    return quote(key, safe="$")


def _encode_value(value: str) -> str:
    return quote(value, safe="!'()*")


def build_query_string(
    filter_expression: Optional[str],
    limit: int,
    offset: int
) -> str:
    """
    Build the percent-encoded OData query string for one page read.
    """
    params = [
        ("$count", "true"),
        ("$top", str(limit)),
        ("$skip", str(offset)),
    ]
    if filter_expression:
        params.append(("$filter", filter_expression))

    return "&".join(f"{_encode_key(k)}={_encode_value(v)}" for k, v in params)


def extract_error_message(data: Any) -> str:
    """
    Pull a human-readable message out of an OData error body.

    Handles the v4 shape {"error": {"message": "..."}} and the v2 shape
    {"error": {"message": {"value": "..."}}}; falls back to the raw text.
    """
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict):
            message = error.get("message")
            if isinstance(message, dict):
                message = message.get("value")
            if message:
                return str(message)
        if data.get("message"):
            return str(data["message"])
    if isinstance(data, str) and data.strip():
        return data.strip()[:500]
    return ""


def classify_status(status: int, message: str = "") -> StockServiceError:
    """
    Map a non-2xx upstream status to a StockServiceError.
    """
    if status in (401, 403):
        return StockServiceError(StockErrorKind.UPSTREAM_AUTH_FAILED, MSG_AUTH_FAILED, status)
    if status == 404:
        return StockServiceError(StockErrorKind.UPSTREAM_NOT_FOUND, MSG_NOT_FOUND, status)
    return StockServiceError(
        StockErrorKind.UPSTREAM_ERROR,
        message or f"EWM request failed with status {status}",
        status,
    )


# =============================================================================
# Gateway
# =============================================================================

class RemoteStockGateway:
    """
    Outbound reader of the EWM physical stock entity set.

    The destination is resolved through the injected resolver on every
    call; the gateway holds no connection state of its own.
    """

    def __init__(self, resolver: DestinationResolver, destination_name: str):
        self.resolver = resolver
        self.destination_name = destination_name

    async def fetch(
        self,
        path: str,
        filter_expression: Optional[str],
        limit: int,
        offset: int,
        correlation_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Read one page of stock from EWM.

        Returns:
            The decoded upstream payload ({"value": [...], "@odata.count": N})

        Raises:
            StockServiceError: Classified failure
        """
        started = time.monotonic()
        try:
            payload = await self._fetch(path, filter_expression, limit, offset, correlation_id)
        except StockServiceError as e:
            record_upstream_call(e.kind.value, time.monotonic() - started, correlation_id)
            raise
        record_upstream_call("ok", time.monotonic() - started, correlation_id)
        return payload

    async def _fetch(
        self,
        path: str,
        filter_expression: Optional[str],
        limit: int,
        offset: int,
        correlation_id: Optional[str]
    ) -> Dict[str, Any]:
        try:
            connection = self.resolver.resolve(self.destination_name)
        except Exception as e:
            logger.exception(
                f"[EWM-GW-006] Destination lookup failed | "
                f"destination={self.destination_name} | correlation_id={correlation_id}"
            )
            raise StockServiceError(StockErrorKind.INTERNAL_ERROR, f"Error: {e}")

        if connection is None:
            logger.error(
                f"[EWM-GW-001] Destination unavailable | "
                f"destination={self.destination_name} | correlation_id={correlation_id}"
            )
            raise StockServiceError(
                StockErrorKind.UPSTREAM_UNAVAILABLE,
                MSG_UNAVAILABLE.format(name=self.destination_name),
            )

        url = f"{path}?{build_query_string(filter_expression, limit, offset)}"
        logger.info(f"[EWM-GW] Calling API | url={url} | correlation_id={correlation_id}")

        try:
            response = await connection.execute("GET", url, dict(REQUEST_HEADERS))
        except UpstreamHTTPError as e:
            raise self._log_failure(classify_status(e.status, e.message), correlation_id)
        except UNREACHABLE_ERRORS as e:
            raise self._log_failure(
                StockServiceError(
                    StockErrorKind.UPSTREAM_UNREACHABLE, f"{MSG_UNREACHABLE} {e}".strip()
                ),
                correlation_id,
            )
        except Exception as e:
            logger.exception(f"[EWM-GW-005] Unexpected transport error | correlation_id={correlation_id}")
            raise StockServiceError(StockErrorKind.INTERNAL_ERROR, f"Error: {e}")

        if not 200 <= response.status < 300:
            raise self._log_failure(
                classify_status(response.status, extract_error_message(response.data)),
                correlation_id,
            )

        if not isinstance(response.data, (dict, list)):
            raise self._log_failure(
                StockServiceError(
                    StockErrorKind.UPSTREAM_ERROR, MSG_UNEXPECTED_RESPONSE, 502
                ),
                correlation_id,
            )

        logger.info(f"[EWM-GW] Response received | status={response.status} | correlation_id={correlation_id}")
        return response.data

    def _log_failure(
        self,
        error: StockServiceError,
        correlation_id: Optional[str]
    ) -> StockServiceError:
        logger.error(
            f"[EWM-GW-002] Upstream call failed | kind={error.kind.value} | "
            f"upstream_status={error.upstream_status} | message={error.message} | "
            f"correlation_id={correlation_id}"
        )
        return error
