"""
Variant sanitizer - normalizes the optional color/size/stock list on a listing.
Bad entries are dropped, not rejected; only a non-list input is an error.
"""

import logging
from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from typing import Any

from marketplace.core.exceptions import ValidationError

logger = logging.getLogger(__name__)


def _clean_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _clean_stock(value: Any) -> int | float | None:
    """Non-negative number, or None if the value is not one."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float, Decimal)):
        number = Decimal(str(value))
    elif isinstance(value, str):
        try:
            number = Decimal(value.strip())
        except InvalidOperation:
            return None
    else:
        return None
    if not number.is_finite() or number < 0:
        return None
    return int(number) if number == number.to_integral_value() else float(number)


def sanitize_variants(raw: Any) -> list[dict[str, Any]]:
    """Keep entries with a color or size and a non-negative numeric stock."""
    if not isinstance(raw, (list, tuple)):
        raise ValidationError("Variants must be an array", reason="variants")

    clean = []
    for position, entry in enumerate(raw):
        if not isinstance(entry, Mapping):
            logger.debug("Dropping variant #%d: not an object", position)
            continue
        color = _clean_text(entry.get("color"))
        size = _clean_text(entry.get("size"))
        stock = _clean_stock(entry.get("stock"))
        if (color is None and size is None) or stock is None:
            logger.debug("Dropping variant #%d: %r", position, entry)
            continue
        clean.append({"color": color, "size": size, "stock": stock})
    return clean
