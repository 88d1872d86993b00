"""
EWM Stock Lookup - Filter Extractor

Flattens the typed predicates of a StockQuery into field -> value for the
filterable EWM fields. Only equality predicates with a defined literal are
kept; everything else is ignored without error.
"""

import logging
from typing import Dict

from services.stock_models import FILTERABLE_FIELDS, StockQuery

logger = logging.getLogger(__name__)


def extract(query: StockQuery) -> Dict[str, str]:
    """
    Extract equality filter values from a query.

    A field appearing twice keeps its last value.

    Returns:
        Mapping of upstream field name to requested value; empty when the
        query carries no usable predicate.
    """
    filters: Dict[str, str] = {}

    if query is None or not query.predicates:
        return filters

    for predicate in query.predicates:
        if predicate.operator != "eq" or predicate.value is None:
            continue
        if predicate.field not in FILTERABLE_FIELDS:
            continue
        filters[predicate.field] = predicate.value

    logger.debug(f"[FILTER-EXTRACT] Extracted filters | fields={sorted(filters)}")
    return filters
