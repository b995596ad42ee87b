"""
Pydantic model for a single catalog entry with a fixed, validated schema.
"""

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from edzip_cli.utils.dates import parse_created_at

FILE_URL_SLOTS = 5

_URL_SCHEMES = ("http://", "https://")

# Header names accepted for each field, in order of preference
_FIELD_ALIASES = {
    "id": ("id",),
    "name": ("name",),
    "created_at": ("created_at", "createdAt"),
    "url": ("url",),
}


def _slot_aliases(slot: int) -> tuple[str, ...]:
    return (f"file_url_{slot}", f"fileUrl{slot}")


def _clean(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _first_present(raw: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        if key in raw and raw[key] is not None:
            return raw[key]
    return None


def is_download_url(url: str) -> bool:
    """Checks that a file slot holds an absolute HTTP(S) link."""
    return bool(url) and url.lower().startswith(_URL_SCHEMES)


class Record(BaseModel):
    """An immutable checklist/evidence-document entry."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str | None = None
    name: str = ""
    created_at: str = ""
    url: str = ""
    file_urls: tuple[str, ...] = Field(default=("",) * FILE_URL_SLOTS)

    @field_validator("id", mode="before")
    @classmethod
    def normalize_id(cls, v: Any) -> str | None:
        """Stores ids as strings; blank ids count as absent."""
        cleaned = _clean(v)
        return cleaned or None

    @field_validator("file_urls", mode="before")
    @classmethod
    def pad_file_urls(cls, v: Any) -> tuple[str, ...]:
        """Always keeps exactly FILE_URL_SLOTS slots, empty where missing."""
        slots = [_clean(url) for url in (v or ())][:FILE_URL_SLOTS]
        slots.extend([""] * (FILE_URL_SLOTS - len(slots)))
        return tuple(slots)

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> "Record":
        """
        Builds a Record from a header-keyed row of the data file.

        Both the export's snake_case headers and camelCase spellings are
        understood. Unknown headers are ignored and missing ones default to
        empty values.
        """
        values = {
            field: _clean(_first_present(raw, keys))
            for field, keys in _FIELD_ALIASES.items()
        }
        values["file_urls"] = tuple(
            _clean(_first_present(raw, _slot_aliases(slot)))
            for slot in range(1, FILE_URL_SLOTS + 1)
        )
        return cls(**values)

    @property
    def download_urls(self) -> list[str]:
        """The valid file links of this record, in slot order."""
        return [url for url in self.file_urls if is_download_url(url)]

    @property
    def uploaded_at(self) -> datetime | None:
        return parse_created_at(self.created_at)


def record_key(record: Record, index: int) -> str:
    """Returns the record id, or its position in the store when it has none."""
    return record.id if record.id else f"#{index}"
