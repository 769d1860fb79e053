"""whichmodel - pick the right AI model for a task.

Fetches model catalogs from OpenRouter, fal and Replicate, normalizes their
pricing into one schema, and asks a cheap LLM to recommend the cheapest,
balanced, and best model for a plain-English task description.

Quick Start:
    >>> from whichmodel.catalog import fetch_catalog
    >>> from whichmodel.config import get_config
    >>> result = fetch_catalog(["openrouter"], get_config())
    >>> print(f"{len(result.models)} models")
"""

__version__ = "0.1.0"
