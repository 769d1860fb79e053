#!/usr/bin/env python3
"""Tests for CLI error helpers."""

import io

import pytest
from rich.console import Console

from whichmodel.cli.error_helpers import format_error_message, handle_cli_error, print_warning
from whichmodel.errors import AuthError, NetworkError, NoModelsFoundError


def capture_console():
    buffer = io.StringIO()
    return Console(file=buffer, no_color=True, width=200), buffer


class TestFormatErrorMessage:
    """Test error message formatting."""

    def test_message_only(self):
        assert format_error_message("Something went wrong") == "[red]Error:[/red] Something went wrong"

    def test_with_hint(self):
        message = format_error_message("Bad key", "Check your key")

        assert message.splitlines() == ["[red]Error:[/red] Bad key", "", "[dim]Check your key[/dim]"]

    def test_markup_is_escaped(self):
        """Model ids like [dev] must not be read as markup."""
        assert "\\[dev]" in format_error_message("FLUX.1 [dev] failed")


class TestHandleCliError:
    """Test exit codes and rendering."""

    @pytest.mark.parametrize(
        "error,code",
        [
            (AuthError("OPENROUTER_API_KEY is not set."), 3),
            (NoModelsFoundError("No models found after applying filters."), 4),
            (NetworkError("Timeout fetching model catalog from OpenRouter."), 6),
        ],
    )
    def test_domain_errors(self, error, code):
        console, buffer = capture_console()

        with pytest.raises(SystemExit) as exc_info:
            handle_cli_error(error, console)

        assert exc_info.value.code == code
        assert f"Error: {error.message}" in buffer.getvalue()

    def test_hint_is_printed(self):
        console, buffer = capture_console()

        with pytest.raises(SystemExit):
            handle_cli_error(AuthError("Missing key.", recovery_hint="Set OPENROUTER_API_KEY."), console)

        assert "Set OPENROUTER_API_KEY." in buffer.getvalue()

    def test_unexpected_error(self):
        console, buffer = capture_console()

        with pytest.raises(SystemExit) as exc_info:
            handle_cli_error(RuntimeError("boom"), console)

        assert exc_info.value.code == 1
        assert "Unexpected error: boom" in buffer.getvalue()

    def test_warning(self):
        console, buffer = capture_console()
        print_warning("Warning: Some catalog sources failed.", console)
        assert "Some catalog sources failed." in buffer.getvalue()
