"""
Pydantic model for application configuration.
Provides robust validation for all settings.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SortOrder(str, Enum):
    """Orderings offered for search results."""

    NAME = "name"
    UPLOAD_ASC = "upload_asc"
    UPLOAD_DESC = "upload_desc"


class ViewMode(str, Enum):
    """Layouts for rendering search results."""

    GALLERY = "gallery"
    LIST = "list"


class TriggerMode(str, Enum):
    """How a single download is carried out."""

    SAVE = "save"
    BROWSER = "browser"


DEFAULT_SORT_ORDER = SortOrder.UPLOAD_DESC
DEFAULT_FUZZY_THRESHOLD = 0.4
DEFAULT_DOWNLOAD_SPACING_MS = 500
DEFAULT_NOTICE_DURATION_MS = 3000
DEFAULT_OUTPUT_DIR = "~/Downloads/edzip"


class AppConfig(BaseModel):
    """A validated configuration model for the application."""

    model_config = ConfigDict(validate_assignment=True, str_strip_whitespace=True)

    # Catalog
    data_file: str

    # Search & Display
    sort_order: SortOrder = DEFAULT_SORT_ORDER
    view_mode: ViewMode = ViewMode.GALLERY
    fuzzy_threshold: float = DEFAULT_FUZZY_THRESHOLD

    # Download Settings
    output_dir: str = DEFAULT_OUTPUT_DIR
    trigger: TriggerMode = TriggerMode.SAVE
    download_spacing_ms: int = DEFAULT_DOWNLOAD_SPACING_MS
    notice_duration_ms: int = DEFAULT_NOTICE_DURATION_MS
    max_workers: int = 4

    # Internal fields not loaded from INI file
    config_path: str = Field(..., repr=False)

    @field_validator("data_file", "output_dir")
    @classmethod
    def validate_path(cls, v: str) -> str:
        if not v:
            raise ValueError("Path settings cannot be empty.")
        return v

    @field_validator("fuzzy_threshold")
    @classmethod
    def validate_threshold(cls, v: float) -> float:
        """Ensures the fuzzy tolerance is a ratio between 0 and 1."""
        if not 0.0 <= v <= 1.0:
            raise ValueError("Fuzzy threshold must be between 0.0 and 1.0.")
        return v

    @field_validator("download_spacing_ms", "notice_duration_ms")
    @classmethod
    def validate_delay(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Delays cannot be negative.")
        return v

    @field_validator("max_workers")
    @classmethod
    def validate_workers(cls, v: int) -> int:
        """Ensures a reasonable number of connections."""
        if v < 1 or v > 16:
            raise ValueError("Max workers must be between 1 and 16.")
        return v

    @classmethod
    def get_ini_keys(cls) -> list[str]:
        """Returns all keys that are expected in the INI file, in declaration order."""
        internal_fields = {"config_path"}
        return [key for key in cls.model_fields if key not in internal_fields]
