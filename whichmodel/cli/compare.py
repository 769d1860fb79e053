#!/usr/bin/env python3
"""CLI wrapper for the compare command."""

from contextlib import nullcontext
from typing import Optional

import click

from whichmodel.catalog import fetch_catalog, parse_sources
from whichmodel.catalog.filters import validate_task
from whichmodel.catalog.source import validate_supported_sources
from whichmodel.cli.error_helpers import handle_cli_error, print_warning
from whichmodel.cli.output import dump_json, render_comparison
from whichmodel.config import get_config, require_api_key
from whichmodel.llm import OpenRouterProvider
from whichmodel.recommender import compare_models, resolve_model, to_compare_json
from whichmodel.ui_styles import make_console


@click.command(context_settings={"max_content_width": 120})
@click.argument("model_a")
@click.argument("model_b")
@click.option("--task", required=True, help="Task to compare the models on")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option("--model", "recommender_model", help="Override recommender LLM")
@click.option("--sources", help="Catalog sources (comma-separated, default: openrouter)")
@click.option("--no-cache", is_flag=True, help="Bypass the catalog cache")
@click.option("--no-color", is_flag=True, help="Disable colored output")
def main(
    model_a: str,
    model_b: str,
    task: str,
    as_json: bool,
    recommender_model: Optional[str],
    sources: Optional[str],
    no_cache: bool,
    no_color: bool,
):
    """Compare two models head-to-head for a task.

    \b
    Examples:
      whichmodel compare deepseek/deepseek-v3.2 anthropic/claude-sonnet-4 --task "code review"
      whichmodel compare flux/dev flux-pro --task "product photos" --sources fal --json
    """
    try:
        task_text = validate_task(task)
        source_names = parse_sources(sources)
        validate_supported_sources(source_names)

        config = get_config()
        api_key = require_api_key(config)

        console = make_console(no_color=no_color)
        with console.status("Fetching model catalog...", spinner="dots") if not as_json else nullcontext():
            fetched = fetch_catalog(source_names, config, no_cache=no_cache)
        if fetched.warning:
            print_warning(fetched.warning)

        first = resolve_model(fetched.models, model_a)
        second = resolve_model(fetched.models, model_b)

        with console.status("Comparing models...", spinner="dots") if not as_json else nullcontext():
            result = compare_models(
                task=task_text,
                model_a=first,
                model_b=second,
                provider=OpenRouterProvider(api_key=api_key),
                recommender_model=recommender_model or config.recommender_model,
            )
    except Exception as e:
        handle_cli_error(e)

    if as_json:
        click.echo(dump_json(to_compare_json(result, first, second)))
        return

    render_comparison(console, task_text, result, first, second)
