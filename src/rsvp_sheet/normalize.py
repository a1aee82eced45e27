"""Normalization helpers for RSVP form values and stored cells.

Form values are kept verbatim; these helpers only decide when a value
counts as missing and how numeric cells are read back.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone, tzinfo

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_DISPLAY_TS_FORMAT = "%m/%d/%Y, %I:%M:%S %p"


# ---------------------------------------------------------------------------
# Rule 1: or_default
# ---------------------------------------------------------------------------

def or_default(value: str | None, default: str) -> str:
    """Return value unless it is None or the empty string."""
    if value is None or value == "":
        return default
    return str(value)


# ---------------------------------------------------------------------------
# Rule 2: parse_count
# ---------------------------------------------------------------------------

def parse_count(value: object) -> int:
    """Read a submission-count cell.

    Accepts ints and strings with a leading integer ("3", " 4", "5.0");
    anything else (None, "", "abc") reads as 0.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value == value else 0
    m = _LEADING_INT.match(str(value))
    return int(m.group(1)) if m else 0


# ---------------------------------------------------------------------------
# Rule 3: timestamps
# ---------------------------------------------------------------------------

def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def iso_timestamp(moment: datetime) -> str:
    """ISO-8601 with millisecond precision and a 'Z' suffix."""
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def display_timestamp(moment: datetime, tz: tzinfo | None = None) -> str:
    """Human-readable local time for notification bodies."""
    return moment.astimezone(tz).strftime(_DISPLAY_TS_FORMAT)
