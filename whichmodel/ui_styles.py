#!/usr/bin/env python3
"""Shared UI helpers for consistent styling across whichmodel commands."""

from __future__ import annotations

import os

from rich.console import Console

# Table styles
TABLE_BORDER_STYLE = "grey50"
TABLE_HEADER_STYLE = "bold magenta"
TABLE_NUM_STYLE = "cyan"
TABLE_ID_STYLE = "white"

# Recommendation tiers: (icon, label, color)
TIER_STYLES = {
    "cheapest": ("💰", "Cheapest", "green"),
    "balanced": ("⚖️", "Balanced", "yellow"),
    "best": ("🏆", "Best", "magenta"),
}


def make_console(no_color: bool = False, stderr: bool = False) -> Console:
    """Create a Console that respects NO_COLOR and --no-color."""
    disabled = no_color or bool(os.environ.get("NO_COLOR"))
    return Console(
        stderr=stderr,
        no_color=disabled,
        force_terminal=False if disabled else None,
        highlight=False,
    )
