"""
Defines the command-line interface for the application using Typer.
"""

import asyncio
import logging
import os
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from edzip_cli import __version__
from edzip_cli.core.dispatcher import DownloadDispatcher
from edzip_cli.core.query_engine import run_query
from edzip_cli.exceptions import EdzipCliError
from edzip_cli.media.downloader import (
    BrowserTrigger,
    Downloader,
    SaveTrigger,
    close_connection_pool,
)
from edzip_cli.models.config import AppConfig, SortOrder, TriggerMode, ViewMode
from edzip_cli.models.stats import DownloadStats
from edzip_cli.storage.config_manager import ConfigManager
from edzip_cli.storage.converter import convert_csv
from edzip_cli.storage.record_store import RecordStore
from edzip_cli.utils.formatting import display_name
from edzip_cli.utils.path import record_download_dir

from .formatters import (
    format_error_with_suggestions,
    print_catalog_info,
    print_config,
    print_search_results,
    print_summary_panel,
    print_validation_table,
)
from .progress_manager import ProgressManager

console = Console()

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("edzip_cli")

app = typer.Typer(
    name="edzip",
    help=(
        "Search the checklist & evidence-material catalog and download its files."
        " Use 'edzip <command> --help' for more info."
    ),
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)


def get_config_dir() -> Path:
    if os.name == "nt":
        base_dir = Path(os.getenv("APPDATA", "~\\AppData\\Roaming"))
    else:
        base_dir = Path(os.getenv("XDG_CONFIG_HOME", "~/.config"))
    return base_dir.expanduser() / "edzip-cli"


CONFIG_DIR = get_config_dir()
CONFIG_FILE = CONFIG_DIR / "config.ini"


def _fail(error: Exception) -> typer.Exit:
    console.print(format_error_with_suggestions(error))
    return typer.Exit(code=1)


def _load_config(cli_options: dict | None = None) -> AppConfig:
    options = {k: v for k, v in (cli_options or {}).items() if v is not None}
    try:
        return ConfigManager(CONFIG_FILE).load_config(options)
    except EdzipCliError as e:
        raise _fail(e) from e


def _load_store(config: AppConfig) -> RecordStore:
    try:
        return RecordStore.load(Path(config.data_file))
    except EdzipCliError as e:
        raise _fail(e) from e


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-vv for debug).",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
    show_config: bool = typer.Option(
        False, "--show-config", help="Display the current configuration."
    ),
):
    """Checklist & Evidence Materials Download Service"""
    if version:
        console.print(f"[bold]edzip-cli[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    log_level = "INFO"
    if verbose >= 2:
        log_level = "DEBUG"
    logging.getLogger("edzip_cli").setLevel(log_level)

    if show_config:
        try:
            config_data = ConfigManager(CONFIG_FILE).get_config_as_dict()
        except EdzipCliError as e:
            raise _fail(e) from e
        if not CONFIG_FILE.is_file():
            console.print("[dim]No configuration file yet, showing defaults.[/dim]")
        print_config(CONFIG_FILE, config_data)
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@app.command()
def init(
    data_file: Path | None = typer.Option(
        None, "--data", "-d", help="Catalog data file to use by default."
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite an existing configuration."
    ),
):
    """Write a configuration file with default settings."""
    if (
        CONFIG_FILE.exists()
        and not force
        and not typer.confirm("Configuration file already exists. Overwrite it?")
    ):
        raise typer.Abort()

    settings = {"data_file": str(data_file)} if data_file else {}
    try:
        ConfigManager(CONFIG_FILE).save_new_config(settings)
    except EdzipCliError as e:
        raise _fail(e) from e
    console.print(f"[bold green]✓ Configuration saved to '{CONFIG_FILE}'[/bold green]")
    console.print("Next: [cyan]edzip convert <CSV>[/cyan] to build the catalog.")


@app.command()
def convert(
    csv_path: Path = typer.Argument(..., help="CSV export of the catalog."),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Where to write the JSON data file (defaults to the configured data file).",
    ),
):
    """Convert the catalog CSV export into the JSON data file."""
    config = _load_config()
    output_path = output or Path(config.data_file)
    try:
        count = convert_csv(csv_path, output_path)
    except EdzipCliError as e:
        log.error(f"[red]Error processing CSV: {e}[/red]")
        raise typer.Exit(code=1) from e
    console.print(
        f"[green]✓ Successfully converted {count} items to {output_path}[/green]"
    )


@app.command()
def search(
    term: str = typer.Argument(
        "", help="Search term. Initial consonants only (e.g. ㅇㅇㅋㄹ) search by chosung."
    ),
    sort: SortOrder | None = typer.Option(
        None, "--sort", "-s", case_sensitive=False, help="Result ordering."
    ),
    view: ViewMode | None = typer.Option(
        None, "--view", case_sensitive=False, help="Gallery cards or a compact list."
    ),
    data_file: Path | None = typer.Option(
        None, "--data", "-d", help="Catalog data file to search."
    ),
):
    """Search the catalog by name."""
    config = _load_config(
        {
            "sort_order": sort,
            "view_mode": view,
            "data_file": str(data_file) if data_file else None,
        }
    )
    store = _load_store(config)
    result = run_query(
        store.records, term, config.sort_order, config.fuzzy_threshold
    )
    lookup = store.key_lookup()
    keys = [lookup[id(record)] for record in result.records]
    print_search_results(result, keys, config.view_mode, console=console)


@app.command(name="download")
def download_command(
    key: str = typer.Argument(
        ..., help="Record key as shown by 'edzip search' (id, or #index)."
    ),
    browser: bool | None = typer.Option(
        None,
        "--browser/--save",
        help="Open each file in the web browser instead of saving it.",
    ),
    output_dir: Path | None = typer.Option(
        None, "--output", "-o", help="Folder that downloaded files are saved into."
    ),
    data_file: Path | None = typer.Option(
        None, "--data", "-d", help="Catalog data file."
    ),
):
    """Download every file attached to a record."""
    trigger_mode = None
    if browser is not None:
        trigger_mode = TriggerMode.BROWSER if browser else TriggerMode.SAVE
    config = _load_config(
        {
            "trigger": trigger_mode,
            "output_dir": str(output_dir) if output_dir else None,
            "data_file": str(data_file) if data_file else None,
        }
    )
    store = _load_store(config)
    try:
        record = store.find(key)
    except EdzipCliError as e:
        raise _fail(e) from e

    name = display_name(record)
    if not record.download_urls:
        console.print(
            f"[yellow]⚠️  '{escape(name)}' has no downloadable files.[/yellow]"
        )
        return

    async def _download_async() -> None:
        stats = DownloadStats()
        save_mode = config.trigger is TriggerMode.SAVE

        async with ProgressManager(
            console=console, show_progress=save_mode
        ) as progress_manager:
            try:
                if save_mode:
                    target_dir = record_download_dir(Path(config.output_dir), name)
                    trigger = SaveTrigger(
                        target_dir,
                        Downloader(config.max_workers),
                        stats,
                        progress_manager,
                    )
                else:
                    trigger = BrowserTrigger(stats)

                dispatcher = DownloadDispatcher(
                    trigger,
                    notifier=progress_manager,
                    spacing_ms=config.download_spacing_ms,
                    notice_duration_ms=config.notice_duration_ms,
                )
                log.info(f"[bold cyan]📥 {escape(name)}[/bold cyan]")
                dispatcher.dispatch(record)
                await dispatcher.drain()
            finally:
                await close_connection_pool()

        print_summary_panel(
            stats, stats.elapsed_seconds, progress_manager.get_statistics()
        )

    asyncio.run(_download_async())


@app.command()
def info(
    data_file: Path | None = typer.Option(
        None, "--data", "-d", help="Catalog data file."
    ),
):
    """Show statistics about the catalog."""
    config = _load_config({"data_file": str(data_file) if data_file else None})
    store = _load_store(config)
    print_catalog_info(store.records, Path(config.data_file))


@app.command()
def validate():
    """Validate the current configuration."""
    try:
        config = ConfigManager(CONFIG_FILE).load_config()
        print_validation_table(config)
    except EdzipCliError as e:
        console.print(f"[red]✗ Configuration is invalid: {e}[/red]")
        raise typer.Exit(code=1) from e
