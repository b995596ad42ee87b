"""
Handles the low-level downloading of files over HTTP, and the triggers that the
download dispatcher calls for each URL.
"""

import asyncio
import logging
import webbrowser
from collections.abc import Awaitable, Callable
from pathlib import Path

import aiofiles
import aiohttp
from rich.progress import TaskID

from edzip_cli.cli.progress_manager import ProgressManager
from edzip_cli.models.stats import DownloadStats
from edzip_cli.utils.path import (
    UNNAMED_FILE,
    claim_filename,
    create_dir,
    filename_from_url,
    safe_filename,
)

log = logging.getLogger(__name__)

DestinationResolver = Callable[[aiohttp.ClientResponse], Awaitable[Path | None]]

_connection_pool: aiohttp.ClientSession | None = None
_pool_lock = asyncio.Lock()


async def get_connection_pool(max_workers: int = 4) -> aiohttp.ClientSession:
    """
    Gets or creates a shared aiohttp ClientSession for downloads.

    This function ensures that only one connection pool is created for the
    lifetime of the application run.

    Args:
        max_workers: Maximum concurrent connections per host.
    """
    global _connection_pool
    async with _pool_lock:
        if _connection_pool and not _connection_pool.closed:
            return _connection_pool

        connector = aiohttp.TCPConnector(
            limit=max_workers * 2,  # Total connections
            limit_per_host=max_workers,
            ttl_dns_cache=600,  # 10 minutes
            enable_cleanup_closed=True,
        )
        timeout = aiohttp.ClientTimeout(total=None, sock_connect=15, sock_read=90)
        _connection_pool = aiohttp.ClientSession(
            connector=connector,
            timeout=timeout,
            headers={"Accept-Encoding": "gzip, deflate, br"},
        )
        log.debug(f"Created download pool with limit_per_host={max_workers}")

    return _connection_pool


async def close_connection_pool() -> None:
    """Closes the shared global connection pool."""
    global _connection_pool
    async with _pool_lock:
        if _connection_pool and not _connection_pool.closed:
            await _connection_pool.close()
            _connection_pool = None
            log.debug("Shared downloader connection pool closed.")


class Downloader:
    """A low-level, single-attempt streaming file downloader."""

    CHUNK_SIZE = 131072  # 128 KB

    def __init__(self, max_workers: int = 4):
        self.max_workers = max_workers

    async def download_file(
        self,
        url: str,
        destination: str | Path | DestinationResolver,
        stats: DownloadStats | None = None,
        progress_manager: ProgressManager | None = None,
    ) -> int | None:
        """
        Streams a URL to a local file, updating a Rich Progress task.

        Args:
            url: The file to fetch.
            destination: The target path, or an async callable that picks it
                once the response headers are in. The callable may return
                None to skip the download.

        Returns:
            The number of bytes written, or None if the download was skipped.
        """
        task_id: TaskID | None = None
        session = await get_connection_pool(self.max_workers)
        async with session.get(url, allow_redirects=True) as response:
            response.raise_for_status()
            if callable(destination):
                destination = await destination(response)
                if destination is None:
                    return None
            destination_path = Path(destination)

            total_size = int(response.headers.get("Content-Length", 0))
            if progress_manager:
                task_id = progress_manager.add_file_task(
                    destination_path.name, total_size
                )

            bytes_downloaded = 0
            try:
                async with aiofiles.open(destination_path, "wb") as f:
                    async for chunk in response.content.iter_chunked(self.CHUNK_SIZE):
                        await f.write(chunk)
                        bytes_downloaded += len(chunk)
                        if progress_manager and task_id is not None:
                            progress_manager.update_task_progress(
                                task_id, completed=bytes_downloaded
                            )
            except BaseException:
                if progress_manager and task_id is not None:
                    progress_manager.remove_task(task_id, success=False)
                await asyncio.to_thread(destination_path.unlink, missing_ok=True)
                raise

        if progress_manager and task_id is not None:
            progress_manager.remove_task(task_id, success=True)
        if stats:
            stats.total_size_downloaded += bytes_downloaded
        return bytes_downloaded


def response_filename(
    response: aiohttp.ClientResponse, url: str, fallback: str = UNNAMED_FILE
) -> str:
    """
    Picks a local filename for a response.

    The server's Content-Disposition filename wins; otherwise the last path
    segment of the requested URL is used.
    """
    disposition = response.content_disposition
    if disposition is not None and disposition.filename:
        return safe_filename(disposition.filename, fallback)
    return filename_from_url(url, fallback)


class SaveTrigger:
    """
    Saves each triggered URL into a local folder.

    One instance serves one dispatch. Filenames are claimed as they are
    picked, so files of the same record that share a name are saved side by
    side as `name`, `name (2)`... Only files that were on disk before the
    dispatch started are skipped.
    """

    def __init__(
        self,
        output_dir: Path,
        downloader: Downloader,
        stats: DownloadStats,
        progress_manager: ProgressManager | None = None,
    ):
        self.output_dir = Path(output_dir)
        self.downloader = downloader
        self.stats = stats
        self.progress_manager = progress_manager
        self._claimed: set[str] = set()

    async def __call__(self, url: str) -> None:
        self.stats.files_triggered += 1
        fallback = f"file_{self.stats.files_triggered}"
        destination: Path | None = None

        async def pick_destination(response: aiohttp.ClientResponse) -> Path | None:
            nonlocal destination
            name = claim_filename(
                response_filename(response, url, fallback), self._claimed
            )
            destination = self.output_dir / name
            if await asyncio.to_thread(destination.exists):
                self.stats.files_skipped_exists += 1
                log.info(f"[yellow]○ Already exists, skipping:[/yellow] {name}")
                return None
            await asyncio.to_thread(create_dir, self.output_dir)
            return destination

        try:
            written = await self.downloader.download_file(
                url, pick_destination, self.stats, self.progress_manager
            )
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            self.stats.files_failed += 1
            log.error(f"[red]✗ Failed to download {url}: {e}[/red]")
            return

        if written is None:
            return
        self.stats.files_saved += 1
        log.info(f"[green]✓ Saved[/green] {destination}")


class BrowserTrigger:
    """Hands each triggered URL to the system web browser."""

    def __init__(self, stats: DownloadStats | None = None):
        self.stats = stats

    def __call__(self, url: str) -> None:
        if self.stats:
            self.stats.files_triggered += 1
        if webbrowser.open_new_tab(url):
            if self.stats:
                self.stats.files_opened_in_browser += 1
            log.info(f"[green]✓ Opened in browser:[/green] {url}")
        else:
            if self.stats:
                self.stats.files_failed += 1
            log.warning(f"[yellow]⚠ No browser available to open:[/yellow] {url}")
