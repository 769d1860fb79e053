"""User-facing error rendering for CLI commands.

Errors print as ``Error: <message>`` on stderr, followed by the recovery hint
when there is one, and the process exits with the error's exit code.
"""

import sys
from typing import NoReturn, Optional

from rich.console import Console
from rich.markup import escape

from whichmodel.domain.exit_codes import ExitCode
from whichmodel.errors import WhichModelError
from whichmodel.logging import get_logger
from whichmodel.ui_styles import make_console

logger = get_logger(__name__)


def format_error_message(message: str, hint: Optional[str] = None) -> str:
    """Rich markup for an error and its optional hint."""
    lines = [f"[red]Error:[/red] {escape(message)}"]
    if hint:
        lines.append("")
        lines.append(f"[dim]{escape(hint)}[/dim]")
    return "\n".join(lines)


def handle_cli_error(error: Exception, console: Optional[Console] = None) -> NoReturn:
    """Print ``error`` and exit with its code."""
    console = console or make_console(stderr=True)

    if isinstance(error, WhichModelError):
        console.print(format_error_message(error.message, error.recovery_hint))
        sys.exit(error.exit_code)

    logger.debug("Unexpected error", exc_info=error)
    console.print(format_error_message(f"Unexpected error: {error}"))
    sys.exit(ExitCode.GENERAL_ERROR)


def print_warning(message: str, console: Optional[Console] = None) -> None:
    console = console or make_console(stderr=True)
    console.print(f"[yellow]{escape(message)}[/yellow]")
