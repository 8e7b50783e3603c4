"""
Functions for formatting and displaying data in the console using Rich.
"""

from pathlib import Path
from typing import Any

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from spotstage.models.config import AppConfig, get_format_info
from spotstage.models.stats import QueueStats, RelocationReport
from spotstage.models.tree import FileTreeNode
from spotstage.utils.formatting import format_duration, format_size


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__
    error_msg = str(error)

    suggestions_map = {
        "ConfigurationError": [
            "• Check the file shown by `spotstage config path`.",
            "• Fix a single value with `spotstage config set KEY VALUE`.",
        ],
        "InvalidPathError": [
            "• Only paths inside the downloads directory can be changed.",
            "• Use `spotstage files list` to see valid paths.",
        ],
        "EmptyQueryError": [
            "• Pass a Spotify URL, a search term, or a special query like 'saved'.",
        ],
        "ProcessStartError": [
            "• Make sure the download tool is installed (`pip install spotdl`).",
            "• Point `spotdl_path` at the executable: "
            "`spotstage config set spotdl_path /path/to/spotdl`.",
            "• Run `spotstage diagnose` to check your setup.",
        ],
        "SizeMismatchError": [
            "• The copy was incomplete; the source file was kept.",
            "• Check free space in the music directory and move the item again.",
        ],
        "FileOperationError": [
            "• Check that the path exists and that you have permission to change it.",
            "• Moves and deletes are safe to run again after fixing the cause.",
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
    for key, value in sorted(config_data.items()):
        if isinstance(value, list):
            value = ", ".join(map(str, value))
        content += f"{key} = {escape(str(value))}\n"

    console.print(
        Panel(
            content.strip(),
            title=f"Configuration ([dim]{escape(str(config_path))}[/dim])",
            border_style="cyan",
        )
    )


def print_validation_table(config: AppConfig):
    """Displays a summary of the current settings."""
    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()

    format_info = get_format_info(config.format)
    color = format_info["color"]

    table.add_row("Format:", f"[{color}]{format_info['name']}[/{color}]")
    table.add_row("Bitrate:", config.bitrate)
    table.add_row("Threads:", str(config.threads))
    table.add_row("Audio Providers:", ", ".join(config.audio_providers))
    table.add_row("Lyrics Providers:", ", ".join(config.lyrics_providers))
    table.add_row("Download Tool:", escape(config.spotdl_path))
    table.add_row("Downloads Dir:", escape(config.downloads_dir))
    table.add_row("Music Dir:", escape(config.music_dir))
    table.add_row("Album Output:", f"[dim]{escape(config.album_output)}[/dim]")
    table.add_row("Playlist Output:", f"[dim]{escape(config.playlist_output)}[/dim]")

    console.print(
        Panel(
            table,
            title="[bold green]✓ Validated Settings[/bold green]",
            border_style="green",
        )
    )


def build_file_tree(label: str, nodes: list[FileTreeNode]) -> Tree:
    """Renders listed nodes as a Rich tree, directories first."""
    tree = Tree(f"[bold]{escape(label)}[/bold]", guide_style="dim")
    _add_nodes(tree, nodes)
    return tree


def _add_nodes(branch: Tree, nodes: list[FileTreeNode]) -> None:
    for node in nodes:
        size = f"[dim]({format_size(node.size)})[/dim]"
        if node.is_directory:
            name = escape(node.name)
            child = branch.add(f"📁 [bold cyan]{name}[/bold cyan] {size}")
            _add_nodes(child, node.children)
        else:
            branch.add(f"🎵 {escape(node.name)} {size}")


def print_file_tree(root: Path, nodes: list[FileTreeNode]):
    """Displays a listed directory tree with a size footer."""
    console = Console()
    if not nodes:
        console.print(f"[dim]Nothing in {escape(str(root))}.[/dim]")
        return

    console.print(build_file_tree(str(root), nodes))
    total = sum(node.size for node in nodes)
    files = sum(1 for node in nodes for _ in node.iter_files())
    console.print(f"\n[bold]{files}[/bold] files, [cyan]{format_size(total)}[/cyan]")


def print_relocation_report(report: RelocationReport):
    """Displays the outcome of moving an item into the library."""
    console = Console()
    if report.vanished:
        console.print(
            f"[yellow]○ Nothing to move: '{escape(report.source)}' no longer "
            "exists.[/yellow]"
        )
        return

    console.print(
        f"[green]✓ Moved to library:[/green] {escape(report.target_relative)}"
    )
    details = [f"[green]{len(report.moved)} moved[/green]"]
    if report.skipped:
        details.append(f"[yellow]{len(report.skipped)} skipped (exists)[/yellow]")
    if report.failed:
        details.append(f"[red]{len(report.failed)} failed[/red]")
    console.print("  " + " + ".join(details))
    for path, error in report.failed:
        console.print(f"  [red]✗ {escape(path)}:[/red] {escape(error)}")


def print_summary_panel(stats: QueueStats, duration_s: float):
    """Displays the final summary of a queue run."""
    console = Console()

    stats_table = Table(show_header=False, box=None, padding=(0, 2))
    stats_table.add_column(style="bold cyan", justify="right", width=20)
    stats_table.add_column(style="white", justify="left")

    stats_table.add_row(
        "✓ Completed:", f"[bold green]{stats.jobs_completed}[/bold green]"
    )
    if stats.jobs_skipped > 0:
        stats_table.add_row("○ Skipped:", f"[yellow]{stats.jobs_skipped}[/yellow]")
    if stats.jobs_failed > 0:
        stats_table.add_row("✗ Failed:", f"[bold red]{stats.jobs_failed}[/bold red]")
    if stats.manifests_written > 0:
        stats_table.add_row(
            "Playlists Written:", f"[cyan]{stats.manifests_written}[/cyan]"
        )

    stats_table.add_row("", "")  # Spacer
    stats_table.add_row("Time Elapsed:", f"[blue]{format_duration(duration_s)}[/blue]")

    if stats.jobs_failed:
        title = "⚠ [bold]Downloads Finished With Errors[/bold]"
        border_color = "yellow"
    else:
        title = "🎵 [bold]Download Complete![/bold]"
        border_color = "green"

    console.print()
    console.print(
        Panel(
            stats_table,
            title=title,
            border_style=border_color,
            box=box.DOUBLE,
            expand=False,
            padding=(1, 2),
        )
    )
    console.print()
