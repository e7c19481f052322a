"""A Log whose output is discarded."""

import typing as t

from ._base import Level, Log, LogBase


class DiscardLog(LogBase):
    """Suppresses all output.

    ``warn_if_func_error`` and ``warn_if_close_error`` still run the function
    or ``close()`` they are given, so resources are released even when
    logging is off.
    """

    def _emit(self, level: Level, message: str, skip: int = 0) -> None:
        pass

    def with_field(self, key: str, value: t.Any) -> Log:
        return self

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


def discard() -> Log:
    """Return a Log whose methods are no-op."""
    return DiscardLog()
