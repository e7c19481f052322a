"""Structlog-based adapter for the lg interface."""

import copy
import logging
import sys
from pathlib import Path

import structlog
import typing as t
from contextlib import suppress

from .._base import (
    BASE_DEPTH,
    ENTRY_KEYS,
    UNKNOWN_CALLER,
    Fields,
    Level,
    Log,
    LogBase,
    Sink,
    entry_fields,
    merge_field,
    safe_str,
)
from ..config import LogFormat, LogSettings, parse_format

_METHODS = {
    Level.DEBUG: "debug",
    Level.WARN: "warning",
    Level.ERROR: "error",
}
_LEVEL_TOKENS = {
    "debug": Level.DEBUG.value,
    "warning": Level.WARN.value,
    "error": Level.ERROR.value,
}
# structlog passes the message as "event" before EventRenamer runs.
_RESERVED_KEYS = (*ENTRY_KEYS, "event")


class LevelToken:
    """Processor rewriting structlog's level name to the lg token."""

    def __init__(self, lowercase: bool) -> None:
        self.lowercase = lowercase

    def __call__(
        self,
        logger: t.Any,
        method_name: str,
        event_dict: dict[str, t.Any],
    ) -> dict[str, t.Any]:
        level = event_dict.get("level")
        if level is not None:
            token = _LEVEL_TOKENS.get(level, str(level).upper())
            event_dict["level"] = token.lower() if self.lowercase else token
        return event_dict


def order_keys(
    logger: t.Any,
    method_name: str,
    event_dict: dict[str, t.Any],
) -> dict[str, t.Any]:
    """Move level, timestamp, caller and message ahead of the fields."""
    ordered = {k: event_dict[k] for k in ENTRY_KEYS if k in event_dict}
    ordered.update((k, v) for k, v in event_dict.items() if k not in ordered)
    return ordered


def find_caller(depth: int) -> str:
    """Return ``file:line:function`` of the frame depth levels above the caller.

    A stack shallower than depth yields the unknown caller; the entry is
    still written.
    """
    try:
        frame = sys._getframe(depth + 1)
    except ValueError:
        return UNKNOWN_CALLER
    code = frame.f_code
    return f"{Path(code.co_filename).name}:{frame.f_lineno}:{code.co_name}"


def build_processors(settings: LogSettings) -> list[t.Any]:
    """Build the processor chain for settings.

    Disabled options contribute no processor, so their keys never appear.
    """
    processors: list[t.Any] = []

    if settings.include_timestamp:
        fmt = "%H:%M:%S.%f" if settings.format is LogFormat.testing else "iso"
        processors.append(
            structlog.processors.TimeStamper(
                fmt=fmt,
                utc=settings.use_utc,
                key="timestamp",
            ),
        )

    if settings.include_level:
        processors.extend(
            (
                structlog.processors.add_log_level,
                LevelToken(lowercase=settings.format is LogFormat.json),
            ),
        )

    processors.extend(
        (structlog.processors.EventRenamer("message"), order_keys),
    )

    if settings.format is LogFormat.json:
        processors.append(structlog.processors.JSONRenderer(default=safe_str))
    else:
        processors.append(structlog.processors.LogfmtRenderer())

    return processors


class Logger(LogBase):
    """Adapts structlog to the lg interface.

    No global ``structlog.configure`` is involved: each root instance wraps
    its own ``PrintLogger`` with a processor chain built from its settings.
    """

    def __init__(
        self,
        sink: Sink | None = None,
        settings: LogSettings | None = None,
    ) -> None:
        self._settings = settings if settings is not None else LogSettings()
        wrapper_class = structlog.make_filtering_bound_logger(logging.DEBUG)
        self._proto = wrapper_class(
            structlog.PrintLogger(file=sink if sink is not None else sys.stdout),
            processors=build_processors(self._settings),
            context={},
        )
        self._impl = self._proto
        self._fields: Fields = ()
        self._caller_skip = self._settings.caller_skip

    @property
    def settings(self) -> LogSettings:
        return self._settings

    @property
    def fields(self) -> Fields:
        return self._fields

    def _emit(self, level: Level, message: str, skip: int = 0) -> None:
        with suppress(Exception):
            kw: dict[str, t.Any] = {}
            if self._settings.include_caller:
                caller = find_caller(BASE_DEPTH + self._caller_skip + skip)
                if self._settings.format is LogFormat.testing:
                    caller = f"[{caller}]"
                kw["caller"] = caller
            getattr(self._impl, _METHODS[level])(message, **kw)

    def with_field(self, key: str, value: t.Any) -> Log:
        fields = merge_field(self._fields, key, value)
        new_logger = copy.copy(self)
        new_logger._fields = fields
        new_logger._impl = self._proto.bind(**entry_fields(fields, _RESERVED_KEYS))
        return new_logger

    def add_caller_skip(self, skip: int) -> Log:
        new_logger = copy.copy(self)
        new_logger._caller_skip = self._caller_skip + skip
        return new_logger


def new() -> Logger:
    """Return a Logger writing text to sys.stdout."""
    return new_with(sys.stdout)


def new_with(
    sink: Sink,
    format: LogFormat | str = LogFormat.text,
    *,
    timestamp: bool = True,
    utc: bool = True,
    level: bool = True,
    caller: bool = True,
    caller_skip: int = 0,
) -> Logger:
    """Return a Logger writing to sink; see lg.adapters.loguru.new_with."""
    settings = LogSettings.build(
        format=parse_format(format),
        include_timestamp=timestamp,
        use_utc=utc,
        include_level=level,
        include_caller=caller,
        caller_skip=caller_skip,
    )
    return Logger(sink, settings)


def testing_factory(sink: Sink) -> Log:
    return new_with(sink, LogFormat.testing, caller_skip=1)
