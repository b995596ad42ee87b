"""
Turns a selected record into a batch of staggered download triggers.

The plan (which URLs, at which offsets, with which notice) is computed by a
pure function. `DownloadDispatcher` then carries it out on the running event
loop without waiting for, inspecting, or retrying any individual download.
"""

import asyncio
import inspect
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

from edzip_cli.models.config import (
    DEFAULT_DOWNLOAD_SPACING_MS,
    DEFAULT_NOTICE_DURATION_MS,
)
from edzip_cli.models.record import Record

log = logging.getLogger(__name__)

DOWNLOAD_SPACING_MS = DEFAULT_DOWNLOAD_SPACING_MS
NOTICE_DURATION_MS = DEFAULT_NOTICE_DURATION_MS

Trigger = Callable[[str], Any]
Scheduler = Callable[[float, Callable[[], None]], Any]


class Notifier(Protocol):
    """Anything that can show and hide the transient multi-file notice."""

    def show_notice(self, message: str) -> None: ...

    def hide_notice(self) -> None: ...


@dataclass(frozen=True)
class ScheduledDownload:
    url: str
    offset_ms: int


@dataclass(frozen=True)
class Notice:
    message: str
    duration_ms: int


@dataclass(frozen=True)
class DownloadPlan:
    """The downloads to trigger for one record and the notice to show, if any."""

    downloads: tuple[ScheduledDownload, ...] = ()
    notice: Notice | None = None

    @property
    def is_empty(self) -> bool:
        return not self.downloads

    @property
    def urls(self) -> list[str]:
        return [item.url for item in self.downloads]


def format_notice(count: int) -> str:
    return f"{count}개의 파일이 다운로드됩니다."


def plan_downloads(
    record: Record,
    spacing_ms: int = DOWNLOAD_SPACING_MS,
    notice_duration_ms: int = NOTICE_DURATION_MS,
) -> DownloadPlan:
    """
    Computes when each of the record's valid file URLs should be triggered.

    Downloads are spaced `spacing_ms` apart in slot order so that browsers do
    not suppress the later ones. A notice naming the file count is only
    attached when there is more than one file.
    """
    urls = record.download_urls
    downloads = tuple(
        ScheduledDownload(url=url, offset_ms=index * spacing_ms)
        for index, url in enumerate(urls)
    )
    notice = None
    if len(urls) > 1:
        notice = Notice(message=format_notice(len(urls)), duration_ms=notice_duration_ms)
    return DownloadPlan(downloads=downloads, notice=notice)


class DownloadDispatcher:
    """Executes download plans with fire-and-forget triggers."""

    def __init__(
        self,
        trigger: Trigger,
        notifier: Notifier | None = None,
        spacing_ms: int = DOWNLOAD_SPACING_MS,
        notice_duration_ms: int = NOTICE_DURATION_MS,
        scheduler: Scheduler | None = None,
    ):
        """
        Args:
            trigger: Called with each URL. May return an awaitable, which is
                run as a background task and never awaited by the dispatcher.
            notifier: Receives the multi-file notice.
            spacing_ms: Delay between consecutive triggers.
            notice_duration_ms: How long the notice stays visible.
            scheduler: `scheduler(delay_seconds, callback)`. Defaults to timers
                on the running asyncio loop.
        """
        self.trigger = trigger
        self.notifier = notifier
        self.spacing_ms = spacing_ms
        self.notice_duration_ms = notice_duration_ms
        self._scheduler = scheduler
        self._pending: set[asyncio.Future] = set()

    def dispatch(self, record: Record) -> DownloadPlan:
        """Shows the notice if needed and triggers every download of `record`."""
        plan = plan_downloads(record, self.spacing_ms, self.notice_duration_ms)
        if plan.is_empty:
            log.debug(f"No downloadable files for record '{record.name}'.")
            return plan

        if plan.notice and self.notifier:
            self.notifier.show_notice(plan.notice.message)
            self._schedule(plan.notice.duration_ms / 1000, self.notifier.hide_notice)

        for item in plan.downloads:
            if item.offset_ms == 0:
                self._fire(item.url)
            else:
                self._schedule(
                    item.offset_ms / 1000, lambda url=item.url: self._fire(url)
                )
        return plan

    def _fire(self, url: str) -> None:
        log.debug(f"Triggering download: {url}")
        result = self.trigger(url)
        if inspect.isawaitable(result):
            self._track(asyncio.ensure_future(result))

    def _schedule(self, delay_s: float, callback: Callable[[], None]) -> None:
        if self._scheduler is not None:
            self._scheduler(delay_s, callback)
            return
        loop = asyncio.get_running_loop()
        self._track(loop.create_task(self._run_later(delay_s, callback)))

    @staticmethod
    async def _run_later(delay_s: float, callback: Callable[[], None]) -> None:
        await asyncio.sleep(delay_s)
        callback()

    def _track(self, future: asyncio.Future) -> None:
        self._pending.add(future)
        future.add_done_callback(self._on_done)

    def _on_done(self, future: asyncio.Future) -> None:
        self._pending.discard(future)
        if future.cancelled():
            return
        if (error := future.exception()) is not None:
            log.error(f"Download trigger failed: {error}")

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Waits until every scheduled trigger and spawned task has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
