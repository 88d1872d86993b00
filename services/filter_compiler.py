"""
============================================================================
EWM Stock Lookup - Filter Compiler
============================================================================

Combines the extracted field predicates and the caller's authorized stock
types into a single upstream OData $filter expression.

Authorization is pushed down into the filter: a record of a stock type the
caller may not see is never requested from EWM. When the caller asks for a
type outside its entitlement, or has no entitlement at all, the compiler
returns DENIED and no upstream call may be made.

POLICY (evaluated in order):
    1. Equality clause per requested Product, Batch, HandlingUnitNumber,
       EWMStorageBin (escaped)
    2. Requested EWMStockType: authorized -> equality clause, else DENIED
    3. No requested EWMStockType: authorized set non-empty -> parenthesized
       "or" of all authorized types, empty set -> DENIED
    4. Clauses joined with "and"; no clauses -> "" (no filter)

============================================================================
"""

import logging
from enum import Enum
from typing import Iterable, List, Mapping, Optional, Union

# Configure module logger
logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

# Business fields filtered by plain equality, in emission order
EQUALITY_FIELDS = ("Product", "Batch", "HandlingUnitNumber", "EWMStorageBin")

STOCK_TYPE_FIELD = "EWMStockType"


class FilterOutcome(Enum):
    """
    Non-expression outcomes of filter compilation.
    """
    DENIED = "DENIED"


DENIED = FilterOutcome.DENIED

CompiledFilter = Union[str, FilterOutcome]


# =============================================================================
# Literal Escaping
# =============================================================================

def escape_literal(value: object) -> str:
    """
    Escape a value for embedding in a single-quoted OData literal.

    Every ' is doubled so the value cannot terminate the literal early.
    """
    return str(value).replace("'", "''")


def unescape_literal(value: str) -> str:
    """Reverse escape_literal."""
    return value.replace("''", "'")


def equality_clause(field: str, value: object) -> str:
    return f"{field} eq '{escape_literal(value)}'"


def _present(predicates: Mapping[str, object], field: str) -> Optional[object]:
    value = predicates.get(field)
    if value is None or value == "":
        return None
    return value


# =============================================================================
# Compilation
# =============================================================================

def compile_filter(
    predicates: Mapping[str, object],
    authorized_stock_types: Iterable[str],
    enforce_authorization: bool = True,
) -> CompiledFilter:
    """
    Compile predicates and entitlements into an upstream $filter expression.

    Args:
        predicates: Field -> requested value, as produced by the extractor
        authorized_stock_types: Stock types the caller may view
        enforce_authorization: When False, stock types are not restricted
            and DENIED is never returned

    Returns:
        The filter expression ("" for no filter), or DENIED
    """
    predicates = predicates or {}
    authorized = frozenset(authorized_stock_types or ())
    clauses: List[str] = []

    for field in EQUALITY_FIELDS:
        value = _present(predicates, field)
        if value is not None:
            clauses.append(equality_clause(field, value))

    requested_type = _present(predicates, STOCK_TYPE_FIELD)

    if not enforce_authorization:
        if requested_type is not None:
            clauses.append(equality_clause(STOCK_TYPE_FIELD, requested_type))
    elif requested_type is not None:
        if str(requested_type) not in authorized:
            logger.info(
                f"[FILTER-COMPILE] Requested stock type not authorized | "
                f"requested={requested_type} | authorized={sorted(authorized)}"
            )
            return DENIED
        clauses.append(equality_clause(STOCK_TYPE_FIELD, requested_type))
    else:
        if not authorized:
            logger.info("[FILTER-COMPILE] Principal has no stock type authorization")
            return DENIED
        disjunction = " or ".join(
            equality_clause(STOCK_TYPE_FIELD, stock_type) for stock_type in sorted(authorized)
        )
        clauses.append(f"({disjunction})")

    return " and ".join(clauses)
