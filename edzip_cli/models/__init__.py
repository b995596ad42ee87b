"""
Data Models Layer.

This package contains the Pydantic models and dataclasses that define the core
data structures used throughout the application, such as catalog records,
configuration and statistics.
"""

from .config import AppConfig, SortOrder, TriggerMode, ViewMode
from .record import Record, record_key
from .stats import DownloadStats

__all__ = [
    "AppConfig",
    "DownloadStats",
    "Record",
    "SortOrder",
    "TriggerMode",
    "ViewMode",
    "record_key",
]
