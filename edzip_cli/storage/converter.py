"""
Converts the catalog CSV export into the JSON data file read at startup.
"""

import csv
import json
import logging
import os
import tempfile
from pathlib import Path

from edzip_cli.exceptions import DataLoadError

log = logging.getLogger(__name__)


def read_csv_rows(csv_path: Path) -> list[dict[str, str]]:
    """
    Reads a CSV export into header-keyed rows.

    The first row holds the headers. Headers and values are trimmed, blank
    rows are skipped, short rows are padded with empty strings and surplus
    values are dropped.

    Raises:
        DataLoadError: If the file cannot be read or parsed.
    """
    csv_path = Path(csv_path)
    try:
        with open(csv_path, encoding="utf-8-sig", newline="") as f:
            reader = csv.reader(f)
            headers = [h.strip() for h in next(reader, [])]
            if not any(headers):
                raise DataLoadError(f"CSV file '{csv_path}' has no header row.")

            rows = []
            for values in reader:
                if not any(v.strip() for v in values):
                    continue
                values = [v.strip() for v in values]
                values.extend([""] * (len(headers) - len(values)))
                rows.append(dict(zip(headers, values)))
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        raise DataLoadError(f"Error processing CSV '{csv_path}': {e}") from e

    return rows


def convert_csv(csv_path: Path, output_path: Path) -> int:
    """
    Converts `csv_path` into a JSON array at `output_path`.

    The output is written to a temporary file first and moved into place, so
    a failed conversion never leaves a partial data file behind.

    Returns:
        The number of records written.
    """
    rows = read_csv_rows(csv_path)
    output_path = Path(output_path).expanduser()

    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=output_path.parent, prefix=f".{output_path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(rows, f, ensure_ascii=False, indent=2)
            os.replace(tmp_name, output_path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
    except OSError as e:
        raise DataLoadError(f"Failed to write data file '{output_path}': {e}") from e

    log.debug(f"Wrote {len(rows)} records to {output_path}")
    return len(rows)
