"""Error types for lg.

Logging calls never raise: errors handed to ``warn_if_*`` are logged and
backend write failures are suppressed. Misconfiguration is the one failure
that surfaces, at construction time.
"""

import typing as t


class LogError(Exception):
    """Base exception for lg."""


class LogConfigError(LogError, ValueError):
    """Raised when an adapter is constructed with invalid configuration."""

    def __init__(
        self,
        message: str,
        field_name: str | None = None,
        value: t.Any = None,
    ) -> None:
        super().__init__(message)
        self.field_name = field_name
        self.value = value
