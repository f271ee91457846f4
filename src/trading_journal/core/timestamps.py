"""Timestamp helpers shared by the analyzers.

Trade timestamps stay strings throughout the engine: ordering and date
range filters compare them lexicographically, so callers are expected to
supply zero-padded ISO-8601 values.  Parsing into ``datetime`` is only
needed for holding times and calendar breakdowns, and is tolerant: a
value that does not parse is reported as ``None`` rather than raised.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone

# Naive "YYYY-MM-DDTHH:MM:SS" with optional fractional seconds
_NAIVE_RE = re.compile(
    r"^(\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})(?:\.(\d{1,9}))?$"
)

# Offset-bearing RFC 3339 ("Z" or +HH:MM)
_RFC3339_RE = re.compile(
    r"^\d{4}-\d{2}-\d{2}[Tt ]\d{2}:\d{2}:\d{2}(?:\.\d+)?(?:[Zz]|[+-]\d{2}:\d{2})$"
)


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse a trade timestamp into an aware UTC ``datetime``.

    Accepts RFC 3339 with an offset, naive ``YYYY-MM-DDTHH:MM:SS`` and the
    same with fractional seconds.  Naive values are taken as UTC.
    Returns ``None`` when the value matches none of these forms.
    """
    if not value:
        return None
    text = value.strip()

    if _RFC3339_RE.match(text):
        normalized = text.replace("z", "Z").replace("Z", "+00:00")
        normalized = _trim_fraction(normalized)
        try:
            return datetime.fromisoformat(normalized).astimezone(timezone.utc)
        except ValueError:
            return None

    match = _NAIVE_RE.match(text)
    if match is None:
        return None
    base, fraction = match.groups()
    try:
        parsed = datetime.strptime(base, "%Y-%m-%dT%H:%M:%S")
    except ValueError:
        return None
    if fraction:
        parsed = parsed.replace(microsecond=int(fraction[:6].ljust(6, "0")))
    return parsed.replace(tzinfo=timezone.utc)


def _trim_fraction(text: str) -> str:
    """Cut fractional seconds to microsecond precision."""
    return re.sub(
        r"\.(\d+)",
        lambda m: "." + m.group(1)[:6].ljust(6, "0"),
        text,
        count=1,
    )


def date_part(timestamp: str) -> str:
    """Return the ``YYYY-MM-DD`` portion of an ISO-like timestamp."""
    return timestamp.split("T", 1)[0].split(" ", 1)[0]


def in_range(value: str, start: str | None = None, end: str | None = None) -> bool:
    """Inclusive lexicographic range check; missing bounds are open."""
    if start is not None and value < start:
        return False
    if end is not None and value > end:
        return False
    return True
