#!/usr/bin/env python3
"""List catalog models with pricing."""

from typing import Optional

import click

from whichmodel.catalog import fetch_catalog, parse_sources
from whichmodel.catalog.filters import parse_modality
from whichmodel.catalog.listing import SORT_KEYS, filter_and_sort_models
from whichmodel.cli.error_helpers import handle_cli_error, print_warning
from whichmodel.cli.output import dump_json, render_model_list
from whichmodel.config import get_config
from whichmodel.ui_styles import make_console


@click.command(context_settings={"max_content_width": 120})
@click.option("--modality", help="Only show models of this modality")
@click.option("--source", help="Only show models from this source")
@click.option(
    "--sort",
    type=click.Choice(SORT_KEYS),
    default="price",
    show_default=True,
    help="Sort order",
)
@click.option("--limit", type=click.IntRange(min=1), default=50, show_default=True)
@click.option("--sources", help="Catalog sources (comma-separated, default: openrouter)")
@click.option("--no-cache", is_flag=True, help="Bypass the catalog cache")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option("--no-color", is_flag=True, help="Disable colored output")
def main(
    modality: Optional[str],
    source: Optional[str],
    sort: str,
    limit: int,
    sources: Optional[str],
    no_cache: bool,
    as_json: bool,
    no_color: bool,
):
    """List available models with pricing.

    Sorting by price puts models without a usable price last.

    \b
    Examples:
      whichmodel list --modality text --sort context
      whichmodel list --sources openrouter,fal --source fal --limit 20
    """
    try:
        parsed_modality = parse_modality(modality) if modality else None
        fetched = fetch_catalog(parse_sources(sources), get_config(), no_cache=no_cache)
    except Exception as e:
        handle_cli_error(e)

    if fetched.warning:
        print_warning(fetched.warning)

    matching = filter_and_sort_models(fetched.models, modality=parsed_modality, source=source, sort=sort)
    items = matching[:limit]

    if as_json:
        click.echo(
            dump_json(
                {
                    "models": [item.model_dump(mode="json") for item in items],
                    "total": len(matching),
                }
            )
        )
        return

    render_model_list(
        make_console(no_color=no_color),
        items,
        total=len(matching),
        sort=sort,
        limit=limit,
        modality=parsed_modality,
    )
