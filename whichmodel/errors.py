#!/usr/bin/env python3
"""
Error types for whichmodel.

Every error carries the exit code the CLI should use and an optional
recovery hint shown to the user under the message.
"""

from typing import Optional

from .domain.exit_codes import ExitCode


class WhichModelError(Exception):
    """Base exception for whichmodel-specific errors."""

    exit_code: ExitCode = ExitCode.GENERAL_ERROR

    def __init__(
        self,
        message: str,
        exit_code: Optional[ExitCode] = None,
        recovery_hint: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        if exit_code is not None:
            self.exit_code = exit_code
        self.recovery_hint = recovery_hint


class InvalidArgumentsError(WhichModelError):
    """Raised when CLI input or constraints fail validation."""

    exit_code = ExitCode.INVALID_ARGUMENTS


class AuthError(WhichModelError):
    """Raised when a credential is missing or rejected (401/403)."""

    exit_code = ExitCode.NO_API_KEY


class NetworkError(WhichModelError):
    """Raised when a provider cannot be reached or keeps failing."""

    exit_code = ExitCode.NETWORK_ERROR

    def __init__(
        self,
        message: str,
        exit_code: Optional[ExitCode] = None,
        recovery_hint: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message, exit_code=exit_code, recovery_hint=recovery_hint)
        self.status_code = status_code


class MalformedResponseError(NetworkError):
    """Raised when a successful response has an unusable body."""

    pass


class NoModelsFoundError(WhichModelError):
    """Raised when no models are left to recommend from."""

    exit_code = ExitCode.NO_MODELS_FOUND


class LLMFailedError(WhichModelError):
    """Raised when the recommender output cannot be used."""

    exit_code = ExitCode.LLM_FAILED
