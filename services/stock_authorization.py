"""
EWM Stock Lookup - Authorization Resolver

Derives the stock types a principal may view from its attribute bag.
"""

import logging
from typing import Any, FrozenSet, Iterable, Optional

from services.stock_models import STOCK_TYPE_ATTRIBUTE, Principal

logger = logging.getLogger(__name__)


def resolve(principal: Optional[Principal]) -> FrozenSet[str]:
    """
    Resolve the set of stock types the principal is entitled to see.

    The stock-type attribute may be absent, a single value or a collection.
    No principal, or no attribute, means "view nothing". Never raises.
    """
    if principal is None:
        return frozenset()

    raw: Any = (principal.attributes or {}).get(STOCK_TYPE_ATTRIBUTE)

    if raw is None:
        return frozenset()

    if isinstance(raw, str):
        values: Iterable[Any] = [raw]
    elif isinstance(raw, (list, tuple, set, frozenset)):
        values = raw
    else:
        values = [raw]

    stock_types = frozenset(str(v).strip() for v in values if v is not None and str(v).strip())

    logger.debug(
        f"[STOCK-AUTH] Resolved stock types | user={principal.id} | "
        f"stock_types={sorted(stock_types)}"
    )
    return stock_types
