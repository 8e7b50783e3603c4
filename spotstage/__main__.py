"""
Console entry point: runs the Typer app and turns errors into Rich panels.
"""

import asyncio
import logging
import sys

from rich.console import Console

from spotstage.cli.app import app
from spotstage.cli.formatters import format_error_with_suggestions
from spotstage.exceptions import SpotstageError

log = logging.getLogger("spotstage")


def main() -> None:
    console = Console(stderr=True)
    try:
        app()
    except (KeyboardInterrupt, asyncio.CancelledError):
        console.print("\n[yellow]⚠️  Cancelled.[/yellow]")
        sys.exit(0)
    except SpotstageError as e:
        console.print(format_error_with_suggestions(e))
        sys.exit(1)
    except Exception as e:
        log.debug("Full traceback:", exc_info=True)
        console.print(format_error_with_suggestions(e, {"type": "Unexpected"}))
        sys.exit(1)


if __name__ == "__main__":
    main()
