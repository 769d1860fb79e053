#!/usr/bin/env python3
"""CLI wrapper for the recommend command."""

import time
from contextlib import nullcontext
from typing import Optional, Tuple

import click

from whichmodel.catalog import fetch_catalog, filter_catalog, parse_constraints, parse_sources
from whichmodel.catalog.filters import validate_task
from whichmodel.catalog.source import validate_supported_sources
from whichmodel.cli.error_helpers import handle_cli_error, print_warning
from whichmodel.cli.output import dump_json, render_recommendation, to_json_output
from whichmodel.config import get_config, require_api_key
from whichmodel.llm import OpenRouterProvider
from whichmodel.logging import get_logger, setup_logging
from whichmodel.recommender import recommend
from whichmodel.ui_styles import make_console

logger = get_logger(__name__)


@click.command(context_settings={"max_content_width": 120})
@click.argument("task", nargs=-1)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option("-m", "--modality", help="Force a specific modality")
@click.option("--model", "recommender_model", help="Override recommender LLM")
@click.option("--max-price", help="Maximum price per unit in USD")
@click.option("--min-context", help="Minimum context length in tokens")
@click.option("--min-resolution", help="Minimum resolution (WxH)")
@click.option("--exclude", help="Exclude model IDs (comma-separated, trailing * for prefix)")
@click.option("--sources", help="Catalog sources (comma-separated, default: openrouter)")
@click.option("--no-cache", is_flag=True, help="Bypass the catalog cache")
@click.option("-v", "--verbose", is_flag=True, help="Show extra recommendation metadata")
@click.option("--no-color", is_flag=True, help="Disable colored output")
def main(
    task: Tuple[str, ...],
    as_json: bool,
    modality: Optional[str],
    recommender_model: Optional[str],
    max_price: Optional[str],
    min_context: Optional[str],
    min_resolution: Optional[str],
    exclude: Optional[str],
    sources: Optional[str],
    no_cache: bool,
    verbose: bool,
    no_color: bool,
):
    """Recommend the cheapest, balanced, and best model for a task.

    \b
    Examples:
      whichmodel recommend "summarize legal contracts"
      whichmodel recommend "generate product photos" --sources openrouter,fal
      whichmodel recommend "transcribe podcasts" --json
    """
    started = time.monotonic()
    if verbose:
        setup_logging("DEBUG")

    try:
        task_text = validate_task(" ".join(task))
        constraints = parse_constraints(
            modality=modality,
            max_price=max_price,
            min_context=min_context,
            min_resolution=min_resolution,
            exclude=exclude,
        )
        source_names = parse_sources(sources)
        validate_supported_sources(source_names)

        config = get_config()
        api_key = require_api_key(config)
        key_warning = config.api_key_warning()
        if key_warning:
            print_warning(f"Warning: {key_warning}")

        console = make_console(no_color=no_color)
        with console.status("Fetching model catalog...", spinner="dots") if not as_json else nullcontext():
            catalog_started = time.monotonic()
            fetched = fetch_catalog(source_names, config, no_cache=no_cache)
            catalog_latency_ms = int((time.monotonic() - catalog_started) * 1000)

        if fetched.warning:
            print_warning(fetched.warning)

        models = filter_catalog(fetched.models, constraints)
        logger.debug("Catalog filtered", total=len(fetched.models), kept=len(models))

        provider = OpenRouterProvider(api_key=api_key)
        result = recommend(
            task=task_text,
            models=models,
            provider=provider,
            recommender_model=recommender_model or config.recommender_model,
            constraints=constraints,
            catalog_sources=source_names,
        )
    except Exception as e:
        handle_cli_error(e)

    if as_json:
        click.echo(dump_json(to_json_output(task_text, result.recommendation, result.meta)))
        return

    render_recommendation(
        console,
        result.recommendation,
        result.meta,
        verbose=verbose,
        catalog_latency_ms=catalog_latency_ms,
        total_latency_ms=int((time.monotonic() - started) * 1000),
    )

