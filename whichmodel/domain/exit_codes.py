"""Standardized exit codes for whichmodel CLI commands."""

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit codes for whichmodel CLI commands."""

    SUCCESS = 0
    """Command completed successfully."""

    GENERAL_ERROR = 1
    """Unexpected failure with no more specific category."""

    INVALID_ARGUMENTS = 2
    """User error: invalid task, flag value, or source list."""

    NO_API_KEY = 3
    """A required credential is missing or was rejected."""

    NO_MODELS_FOUND = 4
    """Catalog empty after fetching or filtering, or every source failed."""

    LLM_FAILED = 5
    """Recommender call failed (normally recovered by the fallback)."""

    NETWORK_ERROR = 6
    """Network failure, exhausted retries, or malformed provider response."""
