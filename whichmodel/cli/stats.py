#!/usr/bin/env python3
"""Catalog statistics by modality, with source credential status."""

from typing import Optional

import click

from whichmodel.catalog import fetch_catalog, parse_sources
from whichmodel.catalog.listing import compute_stats
from whichmodel.cli.error_helpers import handle_cli_error, print_warning
from whichmodel.cli.output import dump_json, render_stats
from whichmodel.config import get_config
from whichmodel.ui_styles import make_console


@click.command(context_settings={"max_content_width": 120})
@click.option("--sources", help="Catalog sources (comma-separated, default: openrouter)")
@click.option("--no-cache", is_flag=True, help="Bypass the catalog cache")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option("--no-color", is_flag=True, help="Disable colored output")
def main(sources: Optional[str], no_cache: bool, as_json: bool, no_color: bool):
    """Show model counts and price ranges per modality."""
    config = get_config()
    try:
        fetched = fetch_catalog(parse_sources(sources), config, no_cache=no_cache)
    except Exception as e:
        handle_cli_error(e)

    if fetched.warning:
        print_warning(fetched.warning)

    stats = compute_stats(fetched.models, config)
    if as_json:
        click.echo(dump_json(stats.model_dump(mode="json")))
        return

    render_stats(make_console(no_color=no_color), stats)
