"""
Helper functions for formatting data into human-readable strings.
"""

from edzip_cli.models.record import Record

UNNAMED_RECORD = "이름 없음"


def format_size(bytes_size: int) -> str:
    """Formats bytes into a human-readable size string (e.g., '145.3 MB')."""
    if bytes_size <= 0:
        return "0 B"
    units = ["B", "KB", "MB", "GB", "TB"]
    i = 0
    while bytes_size >= 1024 and i < len(units) - 1:
        bytes_size /= 1024
        i += 1
    return f"{bytes_size:.1f} {units[i]}"


def format_duration(seconds: float) -> str:
    """
    Formats a duration in seconds into a human-readable string (e.g., '2h 34m 12s').
    """
    s = int(seconds)
    hours, remainder = divmod(s, 3600)
    minutes, secs = divmod(remainder, 60)
    parts = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")
    if secs > 0 or not parts:
        parts.append(f"{secs}s")
    return " ".join(parts)


def display_name(record: Record) -> str:
    """The record name, or a placeholder for records without one."""
    return record.name or UNNAMED_RECORD


def format_upload_date(record: Record) -> str:
    """Formats the upload date as YYYY-MM-DD, or '-' when it is unknown."""
    if (uploaded := record.uploaded_at) is None:
        return "-"
    return uploaded.strftime("%Y-%m-%d")
