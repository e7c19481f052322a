"""lg: a minimal, leveled logging interface.

This package does not itself perform logging. A concrete adapter must be
used, e.g. ``lg.adapters.loguru.new()``. Use ``lg.testing.TestLog`` to
direct output to a test reporter, or ``lg.discard()`` to turn logging off.

    log = lg.adapters.loguru.new().with_field("request_id", 42)
    log.debugf("the answer is: %d", 42)
    log.warn_if_close_error(conn)
"""

from ._base import (
    UNKNOWN_CALLER,
    CallerSkipper,
    Closer,
    Level,
    Log,
    LogBase,
    Sink,
    add_caller_skip,
    sprint,
    sprintf,
)
from .config import LogFormat, LogSettings
from .discard import discard
from .errors import LogConfigError, LogError

__all__ = [
    "UNKNOWN_CALLER",
    "CallerSkipper",
    "Closer",
    "Level",
    "Log",
    "LogBase",
    "LogConfigError",
    "LogError",
    "LogFormat",
    "LogSettings",
    "Sink",
    "add_caller_skip",
    "discard",
    "sprint",
    "sprintf",
]
