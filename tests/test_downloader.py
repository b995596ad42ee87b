"""Tests for the streaming downloader and the save/browser triggers in media/downloader.py."""

import asyncio
import io
from types import SimpleNamespace

import aiohttp
import pytest
from aiohttp import test_utils, web
from rich.console import Console

from edzip_cli.cli.progress_manager import ProgressManager
from edzip_cli.core.dispatcher import DownloadDispatcher
from edzip_cli.media import downloader as downloader_module
from edzip_cli.media.downloader import (
    BrowserTrigger,
    Downloader,
    SaveTrigger,
    close_connection_pool,
)
from edzip_cli.models.record import Record
from edzip_cli.models.stats import DownloadStats

PAYLOAD = bytes(range(256)) * 1200  # spans several download chunks
KOREAN_DISPOSITION = (
    "attachment; filename*=UTF-8''%EC%A0%90%EA%B2%80%ED%91%9C.pdf"
)


class FakeDownloader:
    """Stands in for Downloader, answering every URL with one fixed response."""

    def __init__(self, payload=b"data", error=None, disposition=None):
        self.payload = payload
        self.error = error
        self.disposition = disposition
        self.calls = []

    async def download_file(self, url, destination, stats=None, progress_manager=None):
        self.calls.append(url)
        if self.error:
            raise self.error
        if callable(destination):
            response = SimpleNamespace(content_disposition=self.disposition)
            destination = await destination(response)
            if destination is None:
                return None
        with open(destination, "wb") as f:
            f.write(self.payload + url.encode())
        if stats:
            stats.total_size_downloaded += len(self.payload)
        return len(self.payload)


def run_with_server(routes, body):
    """Runs `body(server)` against a local aiohttp app serving `routes`."""

    async def main():
        app = web.Application()
        app.add_routes(routes)
        server = test_utils.TestServer(app)
        await server.start_server()
        try:
            return await body(server)
        finally:
            await close_connection_pool()
            await server.close()

    return asyncio.run(main())


async def _payload(request):
    return web.Response(body=PAYLOAD, content_type="application/pdf")


async def _drive_file(request):
    return web.Response(body=f"file {request.match_info['file_id']}".encode())


async def _attachment(request):
    return web.Response(body=b"%PDF", headers={"Content-Disposition": KOREAN_DISPOSITION})


async def _dropped_mid_stream(request):
    response = web.StreamResponse(headers={"Content-Length": str(len(PAYLOAD))})
    await response.prepare(request)
    await response.write(PAYLOAD[:4096])
    request.transport.close()
    return response


ROUTES = [
    web.get("/docs/report.pdf", _payload),
    web.get("/file/d/{file_id}/view", _drive_file),
    web.get("/download", _attachment),
    web.get("/broken.pdf", _dropped_mid_stream),
]


# ── Downloader ──────────────────────────────────────────────────────────────


class TestDownloader:
    def test_streams_to_disk(self, tmp_path):
        destination = tmp_path / "report.pdf"
        stats = DownloadStats()
        progress = ProgressManager(Console(file=io.StringIO()))

        async def body(server):
            return await Downloader().download_file(
                str(server.make_url("/docs/report.pdf")), destination, stats, progress
            )

        written = run_with_server(ROUTES, body)

        assert written == len(PAYLOAD)
        assert destination.read_bytes() == PAYLOAD
        assert stats.total_size_downloaded == len(PAYLOAD)
        assert progress.get_statistics()["completed"] == 1

    def test_partial_file_removed_on_failure(self, tmp_path):
        destination = tmp_path / "broken.pdf"
        progress = ProgressManager(Console(file=io.StringIO()))

        async def body(server):
            with pytest.raises(aiohttp.ClientError):
                await Downloader().download_file(
                    str(server.make_url("/broken.pdf")), destination, None, progress
                )

        run_with_server(ROUTES, body)

        assert not destination.exists()
        assert progress.get_statistics()["failed"] == 1

    def test_http_error_raises(self, tmp_path):
        destination = tmp_path / "missing.pdf"

        async def body(server):
            with pytest.raises(aiohttp.ClientResponseError):
                await Downloader().download_file(
                    str(server.make_url("/nope.pdf")), destination
                )

        run_with_server(ROUTES, body)
        assert not destination.exists()

    def test_resolver_can_skip(self, tmp_path):
        async def skip(response):
            return None

        async def body(server):
            return await Downloader().download_file(
                str(server.make_url("/docs/report.pdf")), skip
            )

        assert run_with_server(ROUTES, body) is None
        assert list(tmp_path.iterdir()) == []


# ── SaveTrigger ─────────────────────────────────────────────────────────────


class TestSaveTrigger:
    def test_saves_into_output_dir(self, tmp_path):
        stats = DownloadStats()
        trigger = SaveTrigger(tmp_path / "안양초", FakeDownloader(), stats)

        asyncio.run(trigger("https://f.example.com/docs/report.pdf"))

        assert (tmp_path / "안양초" / "report.pdf").is_file()
        assert stats.files_triggered == 1
        assert stats.files_saved == 1
        assert stats.total_size_downloaded == 4

    def test_same_basename_files_are_all_kept(self, tmp_path):
        stats = DownloadStats()
        trigger = SaveTrigger(tmp_path, FakeDownloader(b""), stats)

        async def run():
            await trigger("https://drive.google.com/file/d/AAA/view")
            await trigger("https://drive.google.com/file/d/BBB/view")

        asyncio.run(run())

        assert stats.files_saved == 2
        assert stats.files_skipped_exists == 0
        assert (tmp_path / "view").read_bytes().endswith(b"AAA/view")
        assert (tmp_path / "view (2)").read_bytes().endswith(b"BBB/view")

    def test_suffix_goes_before_extension(self, tmp_path):
        trigger = SaveTrigger(tmp_path, FakeDownloader(), DownloadStats())

        async def run():
            await trigger("https://a.example.com/report.pdf")
            await trigger("https://b.example.com/REPORT.pdf")

        asyncio.run(run())
        assert sorted(p.name for p in tmp_path.iterdir()) == ["REPORT (2).pdf", "report.pdf"]

    def test_file_from_earlier_run_is_skipped(self, tmp_path):
        (tmp_path / "report.pdf").write_bytes(b"old")
        stats = DownloadStats()

        asyncio.run(SaveTrigger(tmp_path, FakeDownloader(), stats)("https://f/report.pdf"))

        assert stats.files_skipped_exists == 1
        assert stats.files_saved == 0
        assert (tmp_path / "report.pdf").read_bytes() == b"old"

    def test_only_earlier_files_are_skipped(self, tmp_path):
        (tmp_path / "view").write_bytes(b"old")
        stats = DownloadStats()
        trigger = SaveTrigger(tmp_path, FakeDownloader(), stats)

        async def run():
            await trigger("https://drive.google.com/file/d/AAA/view")
            await trigger("https://drive.google.com/file/d/BBB/view")

        asyncio.run(run())

        assert stats.files_skipped_exists == 1
        assert stats.files_saved == 1
        assert (tmp_path / "view").read_bytes() == b"old"
        assert (tmp_path / "view (2)").is_file()

    def test_content_disposition_name_wins(self, tmp_path):
        disposition = SimpleNamespace(filename="점검표.pdf")
        trigger = SaveTrigger(tmp_path, FakeDownloader(disposition=disposition), DownloadStats())

        asyncio.run(trigger("https://drive.google.com/file/d/AAA/view"))

        assert (tmp_path / "점검표.pdf").is_file()

    def test_failure_is_counted_not_raised(self, tmp_path):
        stats = DownloadStats()
        fake = FakeDownloader(error=aiohttp.ClientError("boom"))

        asyncio.run(SaveTrigger(tmp_path, fake, stats)("https://f/report.pdf"))

        assert stats.files_failed == 1
        assert stats.files_saved == 0

    def test_nameless_url_gets_numbered_name(self, tmp_path):
        stats = DownloadStats()
        asyncio.run(SaveTrigger(tmp_path, FakeDownloader(), stats)("https://f.example.com/"))
        assert (tmp_path / "file_1").is_file()


class TestSaveDispatchOverHttp:
    def test_record_with_same_basename_urls(self, tmp_path):
        stats = DownloadStats()

        async def body(server):
            record = Record(
                name="증빙자료",
                file_urls=(
                    str(server.make_url("/file/d/AAA/view")),
                    str(server.make_url("/file/d/BBB/view")),
                    str(server.make_url("/download")),
                ),
            )
            trigger = SaveTrigger(tmp_path, Downloader(), stats)
            dispatcher = DownloadDispatcher(trigger, spacing_ms=1)
            dispatcher.dispatch(record)
            await dispatcher.drain()

        run_with_server(ROUTES, body)

        assert stats.files_saved == 3
        saved = {(tmp_path / "view").read_bytes(), (tmp_path / "view (2)").read_bytes()}
        assert saved == {b"file AAA", b"file BBB"}
        assert (tmp_path / "점검표.pdf").read_bytes() == b"%PDF"


# ── BrowserTrigger ──────────────────────────────────────────────────────────


class TestBrowserTrigger:
    def test_opens_new_tab(self, monkeypatch):
        opened = []
        monkeypatch.setattr(
            downloader_module.webbrowser,
            "open_new_tab",
            lambda url: opened.append(url) or True,
        )
        stats = DownloadStats()

        BrowserTrigger(stats)("https://f/1.pdf")

        assert opened == ["https://f/1.pdf"]
        assert stats.files_opened_in_browser == 1

    def test_no_browser(self, monkeypatch):
        monkeypatch.setattr(
            downloader_module.webbrowser, "open_new_tab", lambda url: False
        )
        stats = DownloadStats()
        BrowserTrigger(stats)("https://f/1.pdf")
        assert stats.files_failed == 1
