"""
Utilities for turning download URLs and record names into safe local paths.
"""

from pathlib import Path
from urllib.parse import unquote, urlparse

from pathvalidate import sanitize_filename

UNNAMED_FILE = "download"


def safe_filename(name: str | None, fallback: str = UNNAMED_FILE) -> str:
    """Sanitizes a candidate filename, using `fallback` when nothing usable is left."""
    safe = sanitize_filename(name or "").strip()
    return safe or sanitize_filename(fallback) or UNNAMED_FILE


def filename_from_url(url: str, fallback: str = UNNAMED_FILE) -> str:
    """
    Derives a filesystem-safe filename from the last path segment of a URL.

    Percent-escapes are decoded so Korean filenames survive. Falls back to
    `fallback` when the URL has no usable path segment.
    """
    path = urlparse(url).path
    candidate = unquote(path.rstrip("/").rsplit("/", 1)[-1]) if path else ""
    return safe_filename(candidate, fallback)


def claim_filename(name: str, taken: set[str]) -> str:
    """
    Returns `name`, or `name (2)`, `name (3)`... if it was already claimed.

    Names are compared case-insensitively and the returned one is added to
    `taken`.
    """
    base = Path(name)
    candidate, counter = name, 1
    while candidate.casefold() in taken:
        counter += 1
        candidate = f"{base.stem} ({counter}){base.suffix}"
    taken.add(candidate.casefold())
    return candidate


def record_download_dir(output_dir: Path, record_name: str) -> Path:
    """Returns the per-record folder that a record's files are saved into."""
    return Path(output_dir).expanduser() / safe_filename(record_name)


def create_dir(directory_path: Path) -> None:
    """Creates a directory if it does not already exist."""
    directory_path.mkdir(parents=True, exist_ok=True)
