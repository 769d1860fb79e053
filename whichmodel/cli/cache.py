#!/usr/bin/env python3
"""Inspect or clear the local catalog cache."""

from typing import Optional

import click

from whichmodel.catalog import VALID_SOURCES, CatalogCache, format_cache_stats
from whichmodel.cli.output import dump_json
from whichmodel.config import get_config
from whichmodel.ui_styles import make_console


@click.command(context_settings={"max_content_width": 120})
@click.option("--clear", is_flag=True, help="Delete cached catalogs")
@click.option(
    "--source",
    type=click.Choice(VALID_SOURCES),
    help="Limit --clear to one source",
)
@click.option("--json", "as_json", is_flag=True, help="Output stats as JSON")
def main(clear: bool, source: Optional[str], as_json: bool):
    """Show cache statistics, or clear cached catalogs.

    \b
    Examples:
      whichmodel cache
      whichmodel cache --clear
      whichmodel cache --clear --source fal
    """
    config = get_config()
    cache = CatalogCache(config.resolved_cache_dir())
    console = make_console()

    if clear:
        cache.invalidate(source)
        target = f"{source} catalog" if source else "all catalogs"
        console.print(f"[green]✓ Cleared cache for {target}[/green]")
        return

    stats = cache.stats(configured_ttl=config.cache_ttl)
    if as_json:
        click.echo(dump_json(stats.model_dump(mode="json")))
        return

    console.print(format_cache_stats(stats), markup=False)
