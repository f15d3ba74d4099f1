"""
Timestamp parsing for the placement archives.

Source rows use "YYYY-MM-DD HH:MM:SS.fff UTC". The fractional part is a
decimal fraction with trailing zeros trimmed, so ".08" is 80 ms.
"""

import re
from datetime import datetime, timezone

_DATE_RE = re.compile(
    r"^\s*(\d{4})-(\d{2})-(\d{2})[ T](\d{2}):(\d{2})"
    r"(?::(\d{2})(?:\.(\d{1,6}))?)?\s*(?:UTC|Z)?\s*$"
)


def parse_timestamp(text: str) -> int:
    """
    Parse a source date or an epoch-millisecond integer string.

    Args:
        text: "2023-07-20 13:00:26.088 UTC", "2023-07-20 13:00 UTC" or "1689858026088"

    Returns:
        Milliseconds since epoch (UTC)

    Raises:
        ValueError: If text matches neither form
    """
    raw = text.strip()
    if raw.lstrip("-").isdigit():
        return int(raw)

    m = _DATE_RE.match(raw)
    if not m:
        raise ValueError(f"bad date: {text!r}")
    year, month, day, hour, minute, second, frac = m.groups()
    dt = datetime(
        int(year), int(month), int(day), int(hour), int(minute), int(second or 0),
        tzinfo=timezone.utc,
    )
    millis = int((frac or "").ljust(6, "0")) // 1000
    return int(dt.timestamp()) * 1000 + millis


def format_timestamp(ms: int) -> str:
    """Render epoch milliseconds as "YYYY-MM-DD HH:MM:SS.fff UTC"."""
    dt = datetime.fromtimestamp(ms // 1000, tz=timezone.utc)
    return f"{dt:%Y-%m-%d %H:%M:%S}.{ms % 1000:03d} UTC"
