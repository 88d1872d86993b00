"""
============================================================================
EWM Stock Lookup - OData Query Parser
============================================================================

Translates the raw OData system query options sent by the UI ($filter,
$top, $skip) into a typed StockQuery. This is the only place that knows the
textual $filter grammar; everything downstream works on Predicate triples.

Parsing is permissive: clauses that are not simple comparisons joined by
"and" (functions, "or" groups, "not") are skipped, never rejected.

============================================================================
"""

import logging
import re
from typing import List, Optional

from services.filter_compiler import unescape_literal
from services.stock_models import DEFAULT_LIMIT, Predicate, StockQuery

# Configure module logger
logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

# Local entity property -> upstream EWM property
FIELD_ALIASES = {
    "product": "Product",
    "stockType": "EWMStockType",
    "batch": "Batch",
    "handlingUnitNumber": "HandlingUnitNumber",
    "storageBin": "EWMStorageBin",
    "warehouse": "EWMWarehouse",
}

COMPARISON_OPERATORS = ("eq", "ne", "gt", "ge", "lt", "le")

_AND_SEPARATOR = re.compile(r"\s+and\s+", re.IGNORECASE)

_CLAUSE_PATTERN = re.compile(
    r"^(?P<field>[A-Za-z_][A-Za-z0-9_]*)\s+"
    r"(?P<op>eq|ne|gt|ge|lt|le)\s+"
    r"(?P<literal>'(?:[^']|'')*'|\S+)$",
    re.IGNORECASE,
)


# =============================================================================
# Filter Parsing
# =============================================================================

def _split_top_level_and(expression: str) -> List[str]:
    """
    Split on "and" occurring outside quoted literals and parentheses.
    """
    clauses: List[str] = []
    depth = 0
    in_quote = False
    start = 0
    i = 0

    while i < len(expression):
        char = expression[i]

        if in_quote:
            if char == "'":
                # '' inside a literal is an escaped quote
                if i + 1 < len(expression) and expression[i + 1] == "'":
                    i += 2
                    continue
                in_quote = False
            i += 1
            continue

        if char == "'":
            in_quote = True
        elif char == "(":
            depth += 1
        elif char == ")":
            depth = max(depth - 1, 0)
        elif depth == 0 and char.isspace():
            match = _AND_SEPARATOR.match(expression, i)
            if match:
                clauses.append(expression[start:i])
                i = match.end()
                start = i
                continue
        i += 1

    clauses.append(expression[start:])
    return [c.strip() for c in clauses if c.strip()]


def _strip_wrapping_parens(clause: str) -> Optional[str]:
    """
    Return the inner text when the whole clause is one parenthesized group.
    """
    if not (clause.startswith("(") and clause.endswith(")")):
        return None

    depth = 0
    in_quote = False
    for i, char in enumerate(clause):
        if char == "'":
            in_quote = not in_quote
        elif in_quote:
            continue
        elif char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0 and i != len(clause) - 1:
                return None

    return clause[1:-1].strip()


def _parse_literal(literal: str) -> Optional[str]:
    if len(literal) >= 2 and literal.startswith("'") and literal.endswith("'"):
        return unescape_literal(literal[1:-1])
    if literal.lower() == "null":
        return None
    return literal


def parse_filter(expression: Optional[str]) -> List[Predicate]:
    """
    Parse an OData $filter string into Predicate triples.

    Args:
        expression: Raw $filter value, e.g. "Product eq 'P1' and stockType eq 'F2'"

    Returns:
        Predicates in order of appearance; unparseable clauses are skipped.
        Never raises.
    """
    if not expression or not expression.strip():
        return []

    predicates: List[Predicate] = []

    for clause in _split_top_level_and(expression.strip()):
        inner = _strip_wrapping_parens(clause)
        if inner is not None:
            predicates.extend(parse_filter(inner))
            continue

        match = _CLAUSE_PATTERN.match(clause)
        if not match:
            logger.debug(f"[QUERY-PARSER] Skipping unsupported clause | clause={clause}")
            continue

        field_name = match.group("field")
        predicates.append(
            Predicate(
                field=FIELD_ALIASES.get(field_name, field_name),
                operator=match.group("op").lower(),
                value=_parse_literal(match.group("literal")),
            )
        )

    return predicates


def build_stock_query(
    filter_expression: Optional[str] = None,
    top: Optional[int] = None,
    skip: Optional[int] = None,
    default_limit: int = DEFAULT_LIMIT,
) -> StockQuery:
    """
    Build a StockQuery from raw OData system query options.

    Omitted $top falls back to default_limit, omitted $skip to 0.

    Raises:
        ValueError: If top or skip is negative
    """
    return StockQuery(
        predicates=parse_filter(filter_expression),
        limit=default_limit if top is None else top,
        offset=0 if skip is None else skip,
    )
