"""
Parsing of the free-form upload timestamps found in the catalog export.
"""

from datetime import datetime, timezone

# Non-ISO layouts seen in spreadsheet exports
_FALLBACK_FORMATS = (
    "%Y/%m/%d",
    "%Y/%m/%d %H:%M",
    "%Y/%m/%d %H:%M:%S",
    "%Y.%m.%d",
    "%Y.%m.%d %H:%M",
    "%Y.%m.%d %H:%M:%S",
)


def parse_created_at(value: str | None) -> datetime | None:
    """
    Parses an upload timestamp into an aware UTC datetime.

    Naive values are read as UTC. Returns None for empty or unparsable input,
    which callers treat as an invalid date.
    """
    if not value or not (text := value.strip()):
        return None

    parsed = None
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        for fmt in _FALLBACK_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue

    if parsed is None:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
