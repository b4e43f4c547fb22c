"""Receipt normalization: raw extraction payloads to canonical bill items.

All of the defensive, stringly-typed parsing of OCR output lives here. The
rest of the package only ever sees validated ``BillItem`` values.
"""

import logging
import math
import re
from collections.abc import Iterable, Mapping
from typing import Any

from ..models import BillItem, NormalizedReceipt

logger = logging.getLogger(__name__)

# Leading numeric prefix, the way a lenient float parser reads "12.5abc"
_NUMBER_PREFIX = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_NON_NUMERIC = re.compile(r"[^0-9.]")


def parse_number(value: Any, strip_non_numeric: bool = False) -> float | None:
    """
    Parse a number or numeric string.

    Args:
        value: Raw value from the extraction payload
        strip_non_numeric: Remove every character except digits and "." first
            (used for prices such as "€3.50")

    Returns:
        A finite float, or None if the value is missing or unparseable
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = _NON_NUMERIC.sub("", value) if strip_non_numeric else value
        match = _NUMBER_PREFIX.match(text)
        if not match:
            return None
        try:
            number = float(match.group(0))
        except ValueError:
            return None
    else:
        return None

    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _parse_quantity(value: Any) -> float:
    quantity = parse_number(value)
    if quantity is None or quantity <= 0:
        return 1.0
    return quantity


def _parse_unit_price(record: Mapping[str, Any]) -> float:
    raw = record.get("unitPrice")
    if raw is None:
        raw = record.get("price")
    price = parse_number(raw, strip_non_numeric=True)
    return 0.0 if price is None else price


def normalize_record(record: Mapping[str, Any], position: int) -> BillItem | None:
    """
    Normalize a single raw record.

    Args:
        record: Raw record with optional name, quantity, unitPrice/price and
            totalPrice fields
        position: Zero-based index of the record in the payload

    Returns:
        The canonical item, or None if the record is unusable
    """
    quantity = _parse_quantity(record.get("quantity"))
    unit_price = _parse_unit_price(record)

    total_price = parse_number(record.get("totalPrice"), strip_non_numeric=True)
    if total_price is None:
        total_price = unit_price * quantity

    # The printed line total wins over a missing unit price
    if total_price > 0 and unit_price == 0 and quantity > 0:
        unit_price = total_price / quantity

    if unit_price < 0 or total_price < 0:
        return None
    if not (math.isfinite(unit_price) and math.isfinite(total_price)):
        return None

    raw_name = record.get("name")
    name = str(raw_name).strip() if raw_name is not None else ""
    if not name:
        name = f"Item {position + 1}"

    return BillItem(
        id=f"item-{position}",
        name=name,
        price=unit_price,
        quantity=quantity,
        total_price=total_price,
        assigned_to=[],
    )


def normalize_receipt(raw_items: Iterable[Any] | None, raw_total: Any = None) -> NormalizedReceipt:
    """
    Convert extraction output into canonical bill items and a bill total.

    Never raises. Malformed records are skipped and counted in ``dropped``.
    If nothing usable survives, the result is empty with a zero total and
    ``nothing_detected`` set.

    Args:
        raw_items: Sequence of raw records as returned by the OCR service
        raw_total: The receipt total (number or numeric string)

    Returns:
        Normalized receipt
    """
    items: list[BillItem] = []
    dropped = 0
    item_sum = 0.0

    for position, record in enumerate(raw_items or []):
        if not isinstance(record, Mapping):
            dropped += 1
            continue

        item = normalize_record(record, position)
        if item is None or not math.isfinite(item_sum + item.total_price):
            dropped += 1
            continue
        item_sum += item.total_price
        items.append(item)

    if not items:
        logger.warning(f"No usable items in receipt ({dropped} dropped)")
        return NormalizedReceipt(items=[], total=0.0, dropped=dropped)

    total = parse_number(raw_total, strip_non_numeric=isinstance(raw_total, str))
    if total is None or total <= 0:
        total = sum(item.total_price for item in items)
        logger.info(f"Calculated total from items: {total}")

    logger.info(
        f"Normalized {len(items)} items ({dropped} dropped), total: {total}"
    )

    return NormalizedReceipt(items=items, total=total, dropped=dropped)
