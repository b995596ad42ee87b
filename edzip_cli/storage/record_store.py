"""
Loads the generated catalog data file into an immutable, ordered store.
"""

import json
import logging
from collections.abc import Iterable, Iterator
from pathlib import Path

from edzip_cli.exceptions import DataLoadError, RecordNotFoundError
from edzip_cli.models.record import Record, record_key

log = logging.getLogger(__name__)


class RecordStore:
    """A read-only, ordered collection of catalog records."""

    def __init__(self, records: Iterable[Record] = ()):
        self._records: tuple[Record, ...] = tuple(records)
        self._keys: tuple[str, ...] = _assign_keys(self._records)

    @classmethod
    def from_rows(cls, rows: Iterable[dict]) -> "RecordStore":
        """Maps raw header-keyed rows onto the fixed Record schema."""
        return cls(Record.from_raw(row) for row in rows)

    @classmethod
    def load(cls, path: Path) -> "RecordStore":
        """
        Reads the JSON data file produced by the `convert` command.

        Raises:
            DataLoadError: If the file is missing, unreadable, or not a JSON
            array of objects.
        """
        path = Path(path).expanduser()
        if not path.is_file():
            raise DataLoadError(
                f"Data file not found at '{path}'. "
                "Run 'edzip convert <CSV>' to generate it."
            )

        try:
            with open(path, encoding="utf-8") as f:
                rows = json.load(f)
        except (OSError, UnicodeDecodeError) as e:
            raise DataLoadError(f"Could not read data file '{path}': {e}") from e
        except json.JSONDecodeError as e:
            raise DataLoadError(f"Data file '{path}' is not valid JSON: {e}") from e

        if not isinstance(rows, list) or not all(isinstance(r, dict) for r in rows):
            raise DataLoadError(
                f"Data file '{path}' must contain a JSON array of objects."
            )

        store = cls.from_rows(rows)
        log.debug(f"Loaded {len(store)} records from {path}")
        return store

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[Record]:
        return iter(self._records)

    def __getitem__(self, index: int) -> Record:
        return self._records[index]

    @property
    def records(self) -> tuple[Record, ...]:
        return self._records

    def keys(self) -> list[str]:
        return list(self._keys)

    def key_lookup(self) -> dict[int, str]:
        """Maps the identity of each held record to its key, for rendering query results."""
        return {id(r): key for r, key in zip(self._records, self._keys)}

    def find(self, key: str) -> Record:
        """
        Looks a record up by its key: the id, or '#<index>' for records
        without one or whose id repeats an earlier record's.

        Raises:
            RecordNotFoundError: If no record has that key.
        """
        for record, candidate in zip(self._records, self._keys):
            if candidate == key:
                return record
        raise RecordNotFoundError(f"No record with key '{key}' in the catalog.")


def _assign_keys(records: tuple[Record, ...]) -> tuple[str, ...]:
    """
    Gives every record a unique key: its id, or '#<index>' when the id is
    missing or was already taken by an earlier record.
    """
    keys: list[str] = []
    seen: set[str] = set()
    for index, record in enumerate(records):
        key = record_key(record, index)
        if key in seen:
            log.warning(
                f"Duplicate record id '{key}' at position {index}; "
                f"addressing it as '#{index}'."
            )
            key = f"#{index}"
        seen.add(key)
        keys.append(key)
    return tuple(keys)
