"""
Shared pytest fixtures: sample catalog rows, an in-memory record store, and a
data file + isolated configuration for CLI tests.
"""

import json

import pytest

from edzip_cli.storage.record_store import RecordStore

SAMPLE_ROWS = [
    {
        "id": "1",
        "name": "안양초 체크리스트",
        "created_at": "2024-01-01",
        "url": "https://example.com/anyang",
        "file_url_1": "https://files.example.com/anyang-1.pdf",
        "file_url_2": "",
        "file_url_3": "not-a-url",
        "file_url_4": "https://files.example.com/anyang-2.hwp",
        "file_url_5": "",
    },
    {
        "id": "2",
        "name": "안중초 증빙자료",
        "created_at": "2024-06-01",
        "url": "",
        "file_url_1": "https://files.example.com/anjung.pdf",
    },
    {
        "id": "",
        "name": "Safety Checklist 2024",
        "created_at": "not a date",
    },
]


@pytest.fixture()
def sample_rows():
    return [dict(row) for row in SAMPLE_ROWS]


@pytest.fixture()
def store(sample_rows):
    return RecordStore.from_rows(sample_rows)


@pytest.fixture()
def data_file(tmp_path, sample_rows):
    path = tmp_path / "data.json"
    path.write_text(json.dumps(sample_rows, ensure_ascii=False), encoding="utf-8")
    return path


@pytest.fixture()
def config_file(tmp_path, monkeypatch):
    """Points the CLI at a configuration file inside the test's temp dir."""
    import edzip_cli.cli.app as cli_app

    path = tmp_path / "config" / "config.ini"
    monkeypatch.setattr(cli_app, "CONFIG_FILE", path)
    return path
