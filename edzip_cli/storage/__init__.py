"""
Storage Layer.

This package handles all data persistence: the configuration file, the CSV
conversion that produces the catalog data file, and the read-only record
store loaded from it.
"""

from .config_manager import ConfigManager
from .converter import convert_csv, read_csv_rows
from .record_store import RecordStore

__all__ = ["ConfigManager", "RecordStore", "convert_csv", "read_csv_rows"]
