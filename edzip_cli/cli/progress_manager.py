"""
Manages a Rich Live display for a download dispatch: the transient notice
banner announcing a multi-file download, and one progress bar per file being
saved.
"""

import asyncio
import logging

from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TransferSpeedColumn,
)
from rich.text import Text

log = logging.getLogger("edzip_cli")


class ProgressManager:
    """
    Renders the notice banner and active file downloads, and implements the
    dispatcher's notifier interface.
    """

    def __init__(self, console: Console, show_progress: bool = True):
        self.console = console
        self.show_progress = show_progress

        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}", justify="left"),
            BarColumn(bar_width=20),
            "[progress.percentage]{task.percentage:>3.0f}%",
            "•",
            DownloadColumn(),
            "•",
            TransferSpeedColumn(),
            console=console,
            transient=False,
        )

        self._live: Live | None = None
        self._notice: str | None = None
        self._active_tasks: dict[TaskID, str] = {}
        self._stats = {
            "completed": 0,
            "failed": 0,
            "peak_concurrent": 0,
            "notices_shown": 0,
        }

    @property
    def notice(self) -> str | None:
        """The notice currently on screen, if any."""
        return self._notice

    def show_notice(self, message: str) -> None:
        self._notice = message
        self._stats["notices_shown"] += 1
        if self._live is None:
            self.console.print(f"[bold magenta]📢 {message}[/bold magenta]")
        self._update_display()

    def hide_notice(self) -> None:
        self._notice = None
        self._update_display()

    def _generate_notice_panel(self) -> Panel:
        return Panel(
            Text(self._notice or "", style="bold white", justify="center"),
            border_style="magenta",
            expand=False,
        )

    def _generate_progress_panel(self) -> Panel:
        if not self._active_tasks:
            return Panel(
                Text(
                    "Waiting for downloads to start...",
                    style="dim italic",
                    justify="center",
                ),
                title="[bold]📥 Active Downloads[/bold]",
                border_style="green",
            )
        return Panel(
            self.progress,
            title=f"[bold]📥 Active Downloads ({len(self._active_tasks)})[/bold]",
            border_style="green",
        )

    def _render(self) -> Group:
        parts = []
        if self._notice:
            parts.append(self._generate_notice_panel())
        if self.show_progress:
            parts.append(self._generate_progress_panel())
        return Group(*parts)

    def _update_display(self):
        """Pushes the current state to the Live display, if one is running."""
        if self._live:
            self._live.update(self._render())

    def add_file_task(self, description: str, total_size: int) -> TaskID:
        if len(description) > 55:
            description = description[:52] + "..."
        task_id = self.progress.add_task(
            description, total=total_size or None, start=True
        )
        self._active_tasks[task_id] = description
        self._stats["peak_concurrent"] = max(
            self._stats["peak_concurrent"], len(self._active_tasks)
        )
        self._update_display()
        return task_id

    def update_task_progress(self, task_id: TaskID, completed: int):
        if task_id is not None:
            self.progress.update(task_id, completed=completed)
            self._update_display()

    def remove_task(self, task_id: TaskID, success: bool = True):
        if task_id is None:
            return
        try:
            self.progress.remove_task(task_id)
        except KeyError:
            return
        self._active_tasks.pop(task_id, None)
        if success:
            self._stats["completed"] += 1
        else:
            self._stats["failed"] += 1
        self._update_display()

    def get_statistics(self) -> dict:
        return self._stats.copy()

    async def __aenter__(self):
        self._live = Live(
            self._render(),
            console=self.console,
            refresh_per_second=12,
            vertical_overflow="visible",
        )
        self._live.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._live:
            await asyncio.sleep(0.2)
            self._notice = None
            self._update_display()
            self._live.stop()
            self._live = None
