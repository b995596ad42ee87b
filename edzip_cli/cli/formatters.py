"""
Functions for formatting and displaying data in the console using Rich.
"""

from collections.abc import Sequence
from pathlib import Path
from typing import Any

from rich import box
from rich.columns import Columns
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from edzip_cli.core.query_engine import QueryResult, SearchMode
from edzip_cli.models.config import AppConfig, ViewMode
from edzip_cli.models.record import Record
from edzip_cli.models.stats import DownloadStats
from edzip_cli.utils.formatting import (
    display_name,
    format_duration,
    format_size,
    format_upload_date,
)

NO_RESULTS_MESSAGE = "검색 결과가 없습니다."

_SORT_LABELS = {
    "upload_desc": "최신순",
    "upload_asc": "오래된순",
    "name": "이름순",
}


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__
    error_msg = str(error)

    suggestions_map = {
        "DataLoadError": [
            "• Check that the file exists and is readable.",
            "• Regenerate the catalog with `edzip convert <CSV>`.",
            "• Point to another data file with `--data PATH`.",
        ],
        "RecordNotFoundError": [
            "• Run `edzip search` to list the records and their keys.",
            "• Records without an id are addressed by position, e.g. `#12`.",
        ],
        "ConfigurationError": [
            "• Review the values in your configuration file.",
            "• Run `edzip init --force` to write a fresh default configuration.",
        ],
        "ClientResponseError": [
            "• The file server rejected the request.",
            "• The link may have expired. Try `--browser` instead.",
        ],
    }

    suggestions = suggestions_map.get(
        error_type, ["• Run the command with -vv for detailed logs."]
    )

    error_text = Text()
    error_text.append(f"{error_type}: ", style="bold red")
    error_text.append(error_msg)

    suggestion_text = Text("\n".join(suggestions))

    content = Table.grid(padding=(1, 0))
    content.add_row(error_text)
    content.add_row()
    content.add_row(Text("Suggestions", style="bold yellow"))
    content.add_row(suggestion_text)

    if context:
        content.add_row()
        content.add_row(Text(f"Context: {context}", style="dim"))

    return Panel(
        content,
        title="[bold red]An Error Occurred[/bold red]",
        border_style="red",
        expand=False,
    )


def print_config(config_path: Path, config_data: dict[str, Any]):
    """Displays the current configuration."""
    console = Console()
    content = ""
    for key, value in config_data.items():
        content += f"{key} = {value}\n"

    console.print(
        Panel(
            content.strip(),
            title=f"Configuration ([dim]{config_path}[/dim])",
            border_style="cyan",
        )
    )


def print_validation_table(config: AppConfig):
    """Displays a summary of the current settings."""
    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()

    table.add_row("Data File:", f"[dim]{config.data_file}[/dim]")
    table.add_row("Default Sort:", _SORT_LABELS[config.sort_order.value])
    table.add_row("View Mode:", config.view_mode.value)
    table.add_row("Fuzzy Threshold:", f"{config.fuzzy_threshold:.2f}")
    table.add_row("Download Mode:", config.trigger.value)
    table.add_row("Output Folder:", f"[dim]{config.output_dir}[/dim]")
    table.add_row("Download Spacing:", f"{config.download_spacing_ms} ms")
    table.add_row("Notice Duration:", f"{config.notice_duration_ms} ms")
    table.add_row("Max Workers:", str(config.max_workers))

    console.print(
        Panel(
            table,
            title="[bold green]✓ Validated Settings[/bold green]",
            border_style="green",
        )
    )


def _files_badge(record: Record) -> str:
    count = len(record.download_urls)
    return f"[bold magenta]FILES ×{count}[/bold magenta]" if count > 1 else ""


def _gallery_card(record: Record, key: str) -> Panel:
    card = Table.grid(padding=(0, 0))
    card.add_column()
    meta = f"[dim]📅 {format_upload_date(record)}[/dim]"
    if badge := _files_badge(record):
        meta += f"  {badge}"
    card.add_row(meta)
    if record.url:
        card.add_row(f"[link={record.url}]🔗 관련 링크[/link]")
    if record.download_urls:
        card.add_row(f"[green]⬇ edzip download {escape(key)}[/green]")
    else:
        card.add_row("[dim]다운로드할 파일 없음[/dim]")
    return Panel(
        card,
        title=f"[bold]{escape(display_name(record))}[/bold]",
        title_align="left",
        subtitle=f"[dim]{escape(key)}[/dim]",
        subtitle_align="right",
        border_style="cyan",
        width=40,
    )


def _list_table(records: Sequence[Record], keys: Sequence[str]) -> Table:
    table = Table(box=box.SIMPLE_HEAVY, expand=True)
    table.add_column("Key", style="dim", no_wrap=True)
    table.add_column("Name", style="bold", overflow="ellipsis")
    table.add_column("Uploaded", no_wrap=True)
    table.add_column("Files", justify="right", style="green")
    table.add_column("Link", style="cyan", no_wrap=True)
    for record, key in zip(records, keys):
        count = len(record.download_urls)
        table.add_row(
            escape(key),
            Text(display_name(record)),
            format_upload_date(record),
            str(count) if count else "-",
            f"[link={record.url}]🔗[/link]" if record.url else "",
        )
    return table


def print_search_results(
    result: QueryResult,
    keys: Sequence[str],
    view_mode: ViewMode = ViewMode.GALLERY,
    console: Console | None = None,
):
    """
    Renders a query result in gallery or list layout.

    Args:
        result: The ordered records to show.
        keys: The store key of each record in `result`, in the same order.
        view_mode: Cards or a compact table.
    """
    console = console or Console()

    header = Text()
    header.append(f"{result.total}", style="bold cyan")
    header.append("개의 리스트를 검색하고 필요한 자료를 다운로드하세요.", style="dim")
    console.print(header)

    summary = f"[dim]정렬:[/dim] {_SORT_LABELS[result.sort_order.value]}"
    if result.mode is not SearchMode.ALL:
        mode_label = "초성" if result.mode is SearchMode.CHOSUNG else "퍼지"
        summary += (
            f"  [dim]검색어:[/dim] [yellow]{escape(result.term)}[/yellow]"
            f" [dim]({mode_label})[/dim]"
        )
    summary += f"  [dim]결과:[/dim] [green]{len(result)}[/green]"
    console.print(summary)
    console.print()

    if result.is_empty:
        console.print(
            Panel(
                Text(NO_RESULTS_MESSAGE, style="dim", justify="center"),
                border_style="dim",
            )
        )
        return

    if view_mode is ViewMode.LIST:
        console.print(_list_table(result.records, keys))
    else:
        console.print(
            Columns(
                [_gallery_card(r, k) for r, k in zip(result.records, keys)],
                equal=True,
            )
        )


def print_catalog_info(records: Sequence[Record], data_file: Path):
    """Displays statistics about the loaded catalog."""
    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan", justify="right")
    table.add_column()

    with_files = [r for r in records if r.download_urls]
    total_files = sum(len(r.download_urls) for r in records)
    dates = sorted(d for r in records if (d := r.uploaded_at) is not None)
    undated = len(records) - len(dates)

    table.add_row("Records:", f"[green]{len(records)}[/green]")
    table.add_row("With Files:", str(len(with_files)))
    table.add_row("Total Files:", str(total_files))
    table.add_row("With Links:", str(sum(1 for r in records if r.url)))
    if dates:
        table.add_row(
            "Uploaded:",
            f"{dates[0].strftime('%Y-%m-%d')} → {dates[-1].strftime('%Y-%m-%d')}",
        )
    if undated:
        table.add_row("No Date:", f"[yellow]{undated}[/yellow]")

    console.print(
        Panel(
            table,
            title=f"[bold]📚 Catalog[/bold] ([dim]{data_file}[/dim])",
            border_style="cyan",
            expand=False,
        )
    )


def print_summary_panel(
    stats: DownloadStats, duration_s: float, progress_stats: dict | None = None
):
    """Displays a summary of a download dispatch."""
    console = Console()

    stats_table = Table(show_header=False, box=None, padding=(0, 2))
    stats_table.add_column(style="bold cyan", justify="right", width=20)
    stats_table.add_column(style="white", justify="left")

    stats_table.add_row("Triggered:", f"[bold]{stats.files_triggered}[/bold]")
    if stats.files_saved:
        stats_table.add_row(
            "✓ Saved:", f"[bold green]{stats.files_saved}[/bold green]"
        )
    if stats.files_opened_in_browser:
        stats_table.add_row(
            "✓ Opened:", f"[bold green]{stats.files_opened_in_browser}[/bold green]"
        )
    if stats.files_skipped_exists:
        stats_table.add_row(
            "○ Skipped:", f"[yellow]{stats.files_skipped_exists} (exists)[/yellow]"
        )
    if stats.files_failed:
        stats_table.add_row("✗ Failed:", f"[bold red]{stats.files_failed}[/bold red]")

    stats_table.add_row("", "")  # Spacer

    if stats.total_size_downloaded:
        stats_table.add_row(
            "Total Size:", f"[cyan]{format_size(stats.total_size_downloaded)}[/cyan]"
        )
    stats_table.add_row("Time Elapsed:", f"[blue]{format_duration(duration_s)}[/blue]")

    if progress_stats and progress_stats.get("peak_concurrent"):
        stats_table.add_row(
            "Peak Concurrent:",
            f"[green]{progress_stats['peak_concurrent']}[/green]",
        )

    border_color = "red" if stats.files_failed else "green"
    console.print()
    console.print(
        Panel(
            stats_table,
            title="📥 [bold]Download Complete[/bold]",
            border_style=border_color,
            box=box.DOUBLE,
            expand=False,
            padding=(1, 2),
        )
    )
    console.print()
