"""
Defines the command-line interface for the application using Typer.
"""

import asyncio
import json
import logging
import os
import shutil
import sys
import time
from pathlib import Path
from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from spotstage import __version__
from spotstage.core.passthrough import (
    meta_arguments,
    run_tool_command,
    save_arguments,
    sync_arguments,
    url_arguments,
)
from spotstage.core.queue_driver import JobQueueDriver, build_requests, expand_queries
from spotstage.core.sink import ConsoleSink
from spotstage.exceptions import SpotstageError
from spotstage.library import Relocator, erase, list_tree
from spotstage.models.config import AppConfig
from spotstage.models.job import JobKind
from spotstage.storage.config_manager import ConfigManager
from spotstage.utils.path import authorize_path

from .formatters import (
    format_error_with_suggestions,
    print_config,
    print_file_tree,
    print_relocation_report,
    print_summary_panel,
    print_validation_table,
)

console = Console()

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=Console(stderr=True),
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("spotstage")

app = typer.Typer(
    name="spotstage",
    help=(
        "Queue music downloads into a staging area, then promote them into your"
        " music library. Use 'spotstage <command> --help' for more info."
    ),
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)
files_app = typer.Typer(help="Browse, delete, and promote downloaded files.")
config_app = typer.Typer(help="Show or change the configuration.")
app.add_typer(files_app, name="files")
app.add_typer(config_app, name="config")


def get_config_dir() -> Path:
    if override := os.getenv("SPOTSTAGE_CONFIG_DIR"):
        return Path(override).expanduser()
    if os.name == "nt":
        base_dir = Path(os.getenv("APPDATA", "~\\AppData\\Roaming"))
    else:
        base_dir = Path(os.getenv("XDG_CONFIG_HOME", "~/.config"))
    return base_dir.expanduser() / "spotstage"


def get_config_file() -> Path:
    return get_config_dir() / "config.json"


def _load_config(cli_options: dict[str, Any] | None = None) -> AppConfig:
    try:
        return ConfigManager(get_config_file()).load_config(cli_options)
    except SpotstageError as e:
        console.print(format_error_with_suggestions(e))
        raise typer.Exit(code=1) from e


def _fail(error: SpotstageError, json_output: bool) -> NoReturn:
    """Reports a non-streaming command's error, as JSON or as a panel."""
    if json_output:
        typer.echo(json.dumps({"error": str(error)}))
    else:
        console.print(format_error_with_suggestions(error))
    raise typer.Exit(code=1) from error


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
):
    """spotstage downloader CLI"""
    if version:
        console.print(f"[bold]spotstage[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    log_level = "INFO"
    if verbose >= 2:
        log_level = "DEBUG"
    logging.getLogger("spotstage").setLevel(log_level)

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


def _read_queries_from_stdin() -> list[str]:
    """Reads queries from stdin, one per line."""
    if sys.stdin.isatty():
        console.print(
            "[yellow]⚠️  No input detected on stdin. Please pipe queries or"
            " redirect a file.[/yellow]"
        )
        console.print(
            "[dim]Examples:[/dim]\n"
            "  [cyan]cat queries.txt | spotstage download --stdin[/cyan]\n"
            "  [cyan]spotstage download --stdin < queries.txt[/cyan]"
        )
        raise typer.Exit(code=1)

    queries = []
    try:
        for line in sys.stdin:
            line = line.strip()
            if line and not line.startswith("#"):
                queries.append(line)
    except KeyboardInterrupt:
        console.print("\n[yellow]⚠️  Input interrupted.[/yellow]")
        raise typer.Exit(code=1) from None

    if not queries:
        console.print("[yellow]⚠️  No valid queries found in stdin.[/yellow]")
        raise typer.Exit(code=1)

    console.print(f"[green]✓ Read {len(queries)} queries from stdin.[/green]")
    return queries


@app.command(name="download")
def download_command(
    queries: list[str] | None = typer.Argument(  # noqa: B008
        None,
        help=(
            "Spotify URLs, search queries ('album:', 'playlist:', 'artist:'), "
            "'<youtube url>|<spotify url>' matches, special queries like 'saved', "
            "or paths to files containing one query per line."
        ),
    ),
    kind: JobKind = typer.Option(  # noqa: B008
        JobKind.ALBUM,
        "-t",
        "--type",
        case_sensitive=False,
        help="What the queries denote when it cannot be told from their shape.",
    ),
    output_format: str | None = typer.Option(
        None, "-f", "--format", help="Audio format (overrides the config)."
    ),
    bitrate: str | None = typer.Option(
        None, "-b", "--bitrate", help="Bitrate such as 320k, or 'auto'."
    ),
    cookie_file: Path | None = typer.Option(  # noqa: B008
        None,
        "--cookie-file",
        exists=True,
        dir_okay=False,
        help="Cookie file for YouTube Music Premium (a private copy is used).",
    ),
    premium: bool = typer.Option(
        False, "--premium", help="Authenticate to YouTube Music Premium."
    ),
    stdin: bool = typer.Option(
        False, "--stdin", help="Read queries from standard input, one per line."
    ),
):
    """Download queued queries one after another into the downloads directory."""
    if stdin and queries:
        console.print(
            "[yellow]⚠️  Both queries and --stdin provided. Using --stdin only."
            "[/yellow]"
        )
        queries = _read_queries_from_stdin()
    elif stdin:
        queries = _read_queries_from_stdin()
    elif not queries:
        console.print(
            "[red]✗ No queries provided.[/red] "
            "Use: [cyan]spotstage download <QUERY>[/cyan] or [cyan]--stdin[/cyan]"
        )
        raise typer.Exit(code=1)

    cli_options = {
        key: value
        for key, value in {"format": output_format, "bitrate": bitrate}.items()
        if value is not None
    }
    config = _load_config(cli_options)
    if premium and cookie_file is None:
        log.warning("[yellow]--premium has no effect without --cookie-file.[/yellow]")

    requests = build_requests(
        expand_queries(queries),
        kind=kind,
        output_format=config.format,
        bitrate=config.bitrate,
        cookie_file=cookie_file,
        premium=premium,
    )
    driver = JobQueueDriver(config, history_dir=get_config_dir())

    async def _download_async():
        console.print("[bold cyan]🎵 Starting download queue...[/bold cyan]")
        start_time = time.monotonic()
        try:
            await driver.run(requests)
        except SpotstageError as e:
            console.print(format_error_with_suggestions(e))
            raise typer.Exit(code=1) from e
        finally:
            driver.save_history()
        return time.monotonic() - start_time

    duration = asyncio.run(_download_async())
    print_summary_panel(driver.stats, duration)
    if driver.stats.jobs_failed:
        raise typer.Exit(code=1)


def _run_tool(arguments_factory, *args) -> None:
    config = _load_config()
    try:
        arguments = arguments_factory(*args)
        exit_code = asyncio.run(run_tool_command(config, arguments, ConsoleSink()))
    except SpotstageError as e:
        console.print(format_error_with_suggestions(e))
        raise typer.Exit(code=1) from e
    if exit_code:
        raise typer.Exit(code=exit_code)


@app.command()
def save(
    query: str = typer.Argument(..., help="What to save metadata for."),
    save_file: str = typer.Option(
        ..., "--save-file", help="Sync file to write (e.g. playlist.spotdl)."
    ),
):
    """Save a query's metadata to a sync file without downloading."""
    _run_tool(save_arguments, query, save_file)


@app.command()
def sync(
    save_file: str = typer.Option(..., "--save-file", help="Sync file to follow."),
):
    """Bring downloads in line with a sync file."""
    _run_tool(sync_arguments, save_file)


@app.command()
def meta(query: str = typer.Argument(..., help="Files or directory to re-tag.")):
    """Update the metadata of already downloaded files."""
    _run_tool(meta_arguments, query)


@app.command()
def url(query: str = typer.Argument(..., help="What to resolve.")):
    """Print the download URLs for a query."""
    _run_tool(url_arguments, query)


@files_app.command("list")
def files_list(
    library: bool = typer.Option(
        False, "--library", help="List the music library instead of downloads."
    ),
    json_output: bool = typer.Option(False, "--json", help="Print JSON."),
):
    """List downloaded files as a tree (empty directories are hidden)."""
    config = _load_config()
    root = Path(config.music_dir if library else config.downloads_dir)
    try:
        nodes = asyncio.run(list_tree(root))
    except SpotstageError as e:
        _fail(e, json_output)

    if json_output:
        typer.echo(json.dumps([node.to_dict() for node in nodes], indent=2))
    else:
        print_file_tree(root, nodes)


@files_app.command("delete")
def files_delete(
    path: str = typer.Argument(..., help="File or directory inside downloads."),
    force: bool = typer.Option(
        False, "--force", "-f", help="Bypass the confirmation prompt."
    ),
    json_output: bool = typer.Option(False, "--json", help="Print JSON."),
):
    """Delete a downloaded file or directory."""
    config = _load_config()
    try:
        target = authorize_path(path, config.downloads_dir)
    except SpotstageError as e:
        _fail(e, json_output)

    if not force and not json_output and not typer.confirm(f"Delete '{target}'?"):
        console.print("[yellow]Operation cancelled.[/yellow]")
        raise typer.Abort()

    try:
        asyncio.run(erase(target))
    except SpotstageError as e:
        _fail(e, json_output)

    if json_output:
        typer.echo(json.dumps({"success": True}))
    else:
        console.print(f"[green]✓ Deleted[/green] {escape(str(target))}")


@files_app.command("move")
def files_move(
    path: str = typer.Argument(..., help="File or directory inside downloads."),
    json_output: bool = typer.Option(False, "--json", help="Print JSON."),
):
    """Move a downloaded file or directory into the music library."""
    config = _load_config()
    relocator = Relocator(Path(config.downloads_dir), Path(config.music_dir))
    try:
        report = asyncio.run(relocator.promote(path))
    except SpotstageError as e:
        _fail(e, json_output)

    if json_output:
        typer.echo(json.dumps(report.to_dict()))
    else:
        print_relocation_report(report)


@config_app.command("show")
def config_show():
    """Display the current configuration."""
    config = _load_config()
    print_config(get_config_file(), config.model_dump())


@config_app.command("set")
def config_set(
    key: str = typer.Argument(..., help="Configuration key."),
    value: str = typer.Argument(..., help="New value (lists are comma-separated)."),
):
    """Change one configuration value."""
    try:
        ConfigManager(get_config_file()).set_value(key, value)
    except SpotstageError as e:
        console.print(format_error_with_suggestions(e))
        raise typer.Exit(code=1) from e
    console.print(f"[green]✓ Set[/green] {escape(key)} = {escape(value)}")


@config_app.command("path")
def config_path():
    """Print where the configuration file lives."""
    typer.echo(str(get_config_file()))


@app.command()
def validate():
    """Validate the current configuration."""
    config = _load_config()
    print_validation_table(config)


@app.command()
def diagnose():
    """Diagnose common configuration and setup issues."""
    console.print("\n[bold cyan]Running diagnostics...[/bold cyan]\n")
    issues_found = False

    config = _load_config()
    console.print(
        f"[green]✓[/] Configuration loaded from: [dim]{get_config_file()}[/dim]"
    )

    downloads_dir = Path(config.downloads_dir)
    if downloads_dir.is_dir() and os.access(downloads_dir, os.W_OK):
        console.print(f"[green]✓[/] Downloads directory is writable: {downloads_dir}")
    else:
        console.print(
            f"[red]✗ Downloads directory missing or not writable:[/] {downloads_dir}"
        )
        issues_found = True

    music_dir = Path(config.music_dir)
    if music_dir.is_dir() or music_dir.parent.is_dir():
        console.print(f"[green]✓[/] Music directory is usable: {music_dir}")
    else:
        console.print(f"[red]✗ Music directory cannot be created:[/] {music_dir}")
        issues_found = True

    if executable := shutil.which(config.spotdl_path):
        console.print(f"[green]✓[/] Download tool found: [dim]{executable}[/dim]")
    else:
        console.print(
            f"[red]✗ Download tool '{escape(config.spotdl_path)}' not found.[/] "
            "Install it or set [cyan]spotdl_path[/cyan]."
        )
        issues_found = True

    console.print()
    if not issues_found:
        console.print(
            "[bold green]✓ All checks passed! Your setup looks good.[/bold green]\n"
        )
    else:
        console.print(
            "[bold red]✗ Some issues were found. "
            "Please review the messages above.[/bold red]\n"
        )
        raise typer.Exit(code=1)
