"""
Cell coercion: raw cell value -> trimmed text or Decimal amount. Pure, ZERO I/O.

CSV sources only ever produce strings (or None for short rows).  Rows built
programmatically or from JSON-like sources may carry numbers, which are
accepted, and containers or bytes, which are not: those raise
RowExtractionError so the row mapper can skip the affected entity.
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Sequence

from billing_kernel.db.types import round_money
from billing_kernel.exceptions import RowExtractionError

ZERO = Decimal("0.00")

# Leading numeric prefix, the way a lenient float parser reads "12.5abc"
_NUMERIC_PREFIX = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")

# Characters dropped before parsing an amount
_AMOUNT_NOISE = re.compile(r"[\s$,]")

_SCALARS = (str, int, float, Decimal)


def cell_text(value: Any, field: str) -> str | None:
    """
    Trimmed text of a cell, or None when the cell is absent or blank.

    Raises:
        RowExtractionError: the cell is not a scalar (list, dict, bytes, ...).
    """
    if value is None:
        return None
    if not isinstance(value, _SCALARS):
        raise RowExtractionError(field, value, f"expected a scalar cell, got {type(value).__name__}")
    text = value.strip() if isinstance(value, str) else str(value)
    return text or None


def first_present(row: Mapping[str, Any], labels: Sequence[str]) -> str | None:
    """
    Text of the first label in ``labels`` whose cell is present and non-blank.

    Labels are tried in order, so the localized label wins over the machine
    label.  A malformed cell raises instead of falling through.
    """
    for label in labels:
        text = cell_text(row.get(label), label)
        if text is not None:
            return text
    return None


def parse_amount(value: Any, field: str = "amount") -> Decimal:
    """
    Parse a monetary cell.  Unparsable text is zero, not an error.

    ``"$1,234.50"`` -> 1234.50, ``"12abc"`` -> 12, ``"abc"`` -> 0,
    ``"NaN"`` -> 0.  Results are quantized to two places.

    Raises:
        RowExtractionError: the cell is not a scalar.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, (int, Decimal)):
        number = Decimal(value)
    elif isinstance(value, float):
        number = Decimal(repr(value))
    else:
        text = cell_text(value, field)
        if text is None:
            return ZERO
        match = _NUMERIC_PREFIX.match(_AMOUNT_NOISE.sub("", text))
        if match is None:
            return ZERO
        try:
            number = Decimal(match.group(0))
        except InvalidOperation:
            # Exponent beyond the decimal context
            return ZERO

    if not number.is_finite():
        return ZERO
    try:
        return round_money(number)
    except InvalidOperation:
        return ZERO
