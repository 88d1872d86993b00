"""
EWM Stock Lookup - Response Normalizer

Maps upstream EWM records to the local WarehousePhysicalStock shape and
attaches the total count.

Record ids combine the business keys with the absolute row position,
"<Product>_<EWMWarehouse>_<EWMStorageBin>_<offset + i>", because the
upstream entity has no single-field key.
"""

import logging
import re
from typing import Any, Dict, List

from services.stock_models import StockPage, StockRecord

logger = logging.getLogger(__name__)

COUNT_KEY = "@odata.count"

_LEADING_NUMBER = re.compile(r"^\s*[-+]?(\d+\.?\d*|\.\d+)([eE][-+]?\d+)?")


def parse_quantity(value: Any) -> float:
    """
    Parse a quantity the way a leading-number parse does.

    "12.5" -> 12.5, "7 EA" -> 7.0; missing or unparseable -> 0.0.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        match = _LEADING_NUMBER.match(str(value))
        if not match:
            return 0.0
        number = float(match.group(0))
    if number != number or number in (float("inf"), float("-inf")):
        return 0.0
    return number


def _text(item: Dict[str, Any], key: str) -> str:
    value = item.get(key)
    if value is None:
        return ""
    return str(value)


def _items(payload: Any) -> List[Dict[str, Any]]:
    if isinstance(payload, dict) and "value" in payload:
        data = payload.get("value") or []
    else:
        data = payload

    if data is None:
        return []
    if isinstance(data, list):
        return [item for item in data if isinstance(item, dict)]
    if isinstance(data, dict):
        return [data]
    return []


def normalize_record(item: Dict[str, Any], position: int) -> StockRecord:
    product = _text(item, "Product")
    warehouse = _text(item, "EWMWarehouse")
    storage_bin = _text(item, "EWMStorageBin")

    return StockRecord(
        id=f"{product}_{warehouse}_{storage_bin}_{position}",
        product=product,
        warehouse=warehouse,
        stock_type=_text(item, "EWMStockType"),
        batch=_text(item, "Batch"),
        handling_unit_number=_text(item, "HandlingUnitNumber"),
        storage_bin=storage_bin,
        quantity=parse_quantity(item.get("EWMStockQuantityInBaseUnit")),
        quantity_unit=_text(item, "EWMStockQuantityBaseUnit"),
    )


def _upstream_count(raw: Any, fallback: int) -> int:
    count = None
    if not isinstance(raw, bool):
        try:
            count = int(raw)
        except (TypeError, ValueError, OverflowError):
            count = None

    if count is None or count < 0:
        logger.warning(
            f"[NORMALIZE] Invalid {COUNT_KEY} value: {raw!r}, falling back to record count"
        )
        return fallback
    return count


def normalize(payload: Any, offset: int = 0) -> StockPage:
    """
    Normalize an upstream payload into a StockPage.

    Args:
        payload: Upstream body; {"value": [...], "@odata.count": N}, a bare
            list of records, or a single record object
        offset: Absolute position of the first record ($skip)

    Returns:
        StockPage whose total_count is the upstream count, or the number of
        returned records when the upstream omitted it
    """
    records = [normalize_record(item, offset + i) for i, item in enumerate(_items(payload))]

    total_count = len(records)
    if isinstance(payload, dict) and payload.get(COUNT_KEY) is not None:
        total_count = _upstream_count(payload[COUNT_KEY], len(records))

    logger.info(f"[NORMALIZE] Records: {len(records)} | Total: {total_count}")
    return StockPage(records=records, total_count=total_count)
