#!/usr/bin/env python3
"""whichmodel CLI - main entry point.

Registers the recommend, compare, list, stats and cache commands on one click group.
"""

import click

from whichmodel import __version__
from whichmodel.cli import cache, compare, models, recommend, stats
from whichmodel.logging import setup_logging


@click.group(context_settings={"max_content_width": 120})
@click.version_option(__version__, prog_name="whichmodel")
def main():
    """whichmodel - tell me what you want to build, I'll tell you which AI model to use.

    \b
    Commands:
      recommend   Recommend cheapest/balanced/best models for a task
      compare     Compare two models head-to-head for a task
      list        List catalog models with pricing
      stats       Model counts and price ranges per modality
      cache       Show or clear the catalog cache

    \b
    Tips:
      Set OPENROUTER_API_KEY before running 'whichmodel recommend'
      Add FAL_API_KEY or REPLICATE_API_TOKEN and use --sources for media models
    """
    setup_logging()


main.add_command(recommend.main, name="recommend")
main.add_command(compare.main, name="compare")
main.add_command(models.main, name="list")
main.add_command(stats.main, name="stats")
main.add_command(cache.main, name="cache")


if __name__ == "__main__":
    main()
