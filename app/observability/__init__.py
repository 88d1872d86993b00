"""
============================================================================
EWM Stock Lookup - Observability Module
============================================================================

Side Effects: Exposes Prometheus metrics

============================================================================
"""

from app.observability.metrics import (
    STOCK_REQUESTS,
    UPSTREAM_CALLS,
    UPSTREAM_LATENCY,
    record_stock_request,
    record_upstream_call,
)

__all__ = [
    "STOCK_REQUESTS",
    "UPSTREAM_CALLS",
    "UPSTREAM_LATENCY",
    "record_stock_request",
    "record_upstream_call",
]
