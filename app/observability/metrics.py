"""
============================================================================
EWM Stock Lookup - Prometheus Metrics
============================================================================

Side Effects: Updates Prometheus metrics registry

METRICS EXPOSED
---------------
- ewm_stock_requests_total: Stock reads by outcome (ok or error kind)
- ewm_upstream_calls_total: Upstream EWM calls by result
- ewm_upstream_latency_seconds: Upstream EWM call latency

Recording a metric never raises; failures are logged.

============================================================================
"""

import logging
from typing import Optional

from prometheus_client import Counter, Histogram

# Configure module logger
logger = logging.getLogger(__name__)


# ============================================================================
# PROMETHEUS METRICS DEFINITIONS
# ============================================================================

STOCK_REQUESTS = Counter(
    "ewm_stock_requests_total",
    "Total number of WarehousePhysicalStock reads by outcome",
    ["outcome"]
)

UPSTREAM_CALLS = Counter(
    "ewm_upstream_calls_total",
    "Total number of upstream EWM calls by result",
    ["result"]
)

UPSTREAM_LATENCY = Histogram(
    "ewm_upstream_latency_seconds",
    "Latency of upstream EWM calls in seconds",
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0]
)


# ============================================================================
# METRIC UPDATE FUNCTIONS
# ============================================================================

def record_stock_request(
    outcome: str,
    correlation_id: Optional[str] = None
) -> None:
    """
    Record the outcome of one stock read.

    Args:
        outcome: "ok" or the error kind (e.g. "FORBIDDEN_TYPE")
        correlation_id: Optional tracking ID
    """
    try:
        STOCK_REQUESTS.labels(outcome=outcome).inc()
        logger.debug(
            "Metric: stock_request | outcome=%s | correlation_id=%s",
            outcome, correlation_id
        )
    except Exception as e:
        logger.error(
            "[OBS-001] Failed to record stock_request metric | error=%s",
            str(e)
        )


def record_upstream_call(
    result: str,
    duration_seconds: float,
    correlation_id: Optional[str] = None
) -> None:
    """
    Record one upstream EWM call and its latency.

    Args:
        result: "ok" or the classified failure kind
        duration_seconds: Wall time of the call
        correlation_id: Optional tracking ID
    """
    try:
        UPSTREAM_CALLS.labels(result=result).inc()
        UPSTREAM_LATENCY.observe(max(duration_seconds, 0.0))
        logger.debug(
            "Metric: upstream_call | result=%s | duration=%.3fs | correlation_id=%s",
            result, duration_seconds, correlation_id
        )
    except Exception as e:
        logger.error(
            "[OBS-002] Failed to record upstream_call metric | error=%s",
            str(e)
        )
