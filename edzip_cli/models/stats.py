"""
Dataclass for tracking the outcome of a download dispatch.
"""

import time
from dataclasses import dataclass, field


@dataclass
class DownloadStats:
    """Counts what happened to every file triggered in a session."""

    files_triggered: int = 0
    files_saved: int = 0
    files_skipped_exists: int = 0
    files_opened_in_browser: int = 0
    files_failed: int = 0
    total_size_downloaded: int = 0
    _start_time: float = field(default_factory=time.monotonic, repr=False)

    @property
    def elapsed_seconds(self) -> float:
        return time.monotonic() - self._start_time
