"""
Date normalizer: free text -> naive datetime. Best effort, never raises.

Known export layouts are tried first, in order, searched anywhere in the
text: ``YYYY-MM-DD HH:MM:SS``, ``DD/MM/YYYY HH:MM:SS``, ``YYYY/MM/DD HH:MM:SS``.
A match that is not a real calendar date falls through to the next layout.
Anything else goes to dateutil's generic parser.  Empty, absent, non-text
or unparsable input yields the clock's current local time.

Results are naive wall-clock datetimes; aware results from the generic
parser are converted to local time first.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any

from dateutil import parser as date_parser

from billing_kernel.domain.clock import Clock, SystemClock
from billing_kernel.logging_config import get_logger

logger = get_logger("ingestion.dates")

# (pattern, group order as year/month/day indexes)
_KNOWN_LAYOUTS: tuple[tuple[re.Pattern[str], tuple[int, int, int]], ...] = (
    (re.compile(r"(\d{4})-(\d{2})-(\d{2})\s+(\d{2}):(\d{2}):(\d{2})"), (1, 2, 3)),
    (re.compile(r"(\d{2})/(\d{2})/(\d{4})\s+(\d{2}):(\d{2}):(\d{2})"), (3, 2, 1)),
    (re.compile(r"(\d{4})/(\d{2})/(\d{2})\s+(\d{2}):(\d{2}):(\d{2})"), (1, 2, 3)),
)


def _match_known_layout(text: str) -> datetime | None:
    for pattern, (y, m, d) in _KNOWN_LAYOUTS:
        match = pattern.search(text)
        if match is None:
            continue
        try:
            return datetime(
                int(match.group(y)),
                int(match.group(m)),
                int(match.group(d)),
                int(match.group(4)),
                int(match.group(5)),
                int(match.group(6)),
            )
        except ValueError:
            continue
    return None


def _generic_parse(text: str, default: datetime) -> datetime | None:
    try:
        parsed = date_parser.parse(text, default=default)
        if parsed.tzinfo is not None:
            # Offsets at the calendar edges overflow here, not in parse()
            parsed = parsed.astimezone().replace(tzinfo=None)
    except (ValueError, OverflowError):
        return None
    return parsed


def normalize_datetime(value: Any, clock: Clock | None = None) -> datetime:
    """
    Parse a transaction timestamp.

    Args:
        value: Cell text (anything else is treated as absent).
        clock: Source of "now" for the fallback.  Defaults to SystemClock.

    Returns:
        A naive datetime.  Never raises.
    """
    clock = clock or SystemClock()
    if not isinstance(value, str) or not value.strip():
        return clock.local_now()

    text = value.strip()
    parsed = _match_known_layout(text)
    if parsed is not None:
        return parsed

    now = clock.local_now()
    parsed = _generic_parse(text, default=now.replace(hour=0, minute=0, second=0, microsecond=0))
    if parsed is not None:
        return parsed

    logger.debug("datetime_unparsable", extra={"value": text})
    return now
