"""Adapts the standard library logging module for use with lg."""

import copy
import json
import logging
import sys
import time

import typing as t
from contextlib import suppress

from .._base import (
    BASE_DEPTH,
    Fields,
    Level,
    Log,
    LogBase,
    Sink,
    merge_field,
    safe_str,
)
from ..config import LogFormat, LogSettings
from ..errors import LogConfigError

_LEVELS = {
    Level.DEBUG: logging.DEBUG,
    Level.WARN: logging.WARNING,
    Level.ERROR: logging.ERROR,
}


class SinkHandler(logging.StreamHandler):  # type: ignore[type-arg]
    """Stream handler that drops write failures instead of reporting them."""

    def handleError(self, record: logging.LogRecord) -> None:
        pass


def build_formatter(settings: LogSettings) -> logging.Formatter:
    parts: list[str] = []
    if settings.include_timestamp:
        parts.append("%(asctime)s.%(msecs)03d")
    if settings.include_level:
        parts.append("%(lg_level)-5s")
    if settings.include_caller:
        parts.append("%(filename)s:%(lineno)d:%(funcName)s")
    parts.append("%(message)s")

    formatter = logging.Formatter("\t".join(parts), datefmt="%Y-%m-%dT%H:%M:%S")
    if settings.use_utc:
        formatter.converter = time.gmtime
    return formatter


class Logger(LogBase):
    """Log backed by a private, non-propagating ``logging.Logger``.

    Only the text format is supported. Fields are appended to the message
    as a JSON object.
    """

    def __init__(
        self,
        sink: Sink | None = None,
        settings: LogSettings | None = None,
    ) -> None:
        self._settings = settings if settings is not None else LogSettings()
        if self._settings.format is not LogFormat.text:
            msg = f"Invalid log format for stdlib logger: {self._settings.format.value!r}"
            raise LogConfigError(msg, field_name="format", value=self._settings.format)

        handler = SinkHandler(sink if sink is not None else sys.stdout)
        handler.setFormatter(build_formatter(self._settings))

        # Constructed directly so it never joins the logging.getLogger tree.
        impl = logging.Logger("lg")
        impl.setLevel(logging.DEBUG)
        impl.propagate = False
        impl.addHandler(handler)

        self._impl = impl
        self._fields: Fields = ()
        self._caller_skip = self._settings.caller_skip

    @property
    def fields(self) -> Fields:
        return self._fields

    def _emit(self, level: Level, message: str, skip: int = 0) -> None:
        with suppress(Exception):
            if self._fields:
                message = f"{message}\t{json.dumps(dict(self._fields), default=safe_str)}"
            self._impl.log(
                _LEVELS[level],
                message,
                extra={"lg_level": level.value},
                stacklevel=1 + BASE_DEPTH + self._caller_skip + skip,
            )

    def with_field(self, key: str, value: t.Any) -> Log:
        new_logger = copy.copy(self)
        new_logger._fields = merge_field(self._fields, key, value)
        return new_logger

    def add_caller_skip(self, skip: int) -> Log:
        new_logger = copy.copy(self)
        new_logger._caller_skip = self._caller_skip + skip
        return new_logger


def new() -> Logger:
    """Return a Logger writing to sys.stdout, reporting caller and level."""
    return new_with(sys.stdout)


def new_with(
    sink: Sink,
    *,
    timestamp: bool = True,
    utc: bool = False,
    level: bool = True,
    caller: bool = True,
    caller_skip: int = 0,
) -> Logger:
    """Return a Logger writing to sink.

    If caller is true the call site is logged; if level is true the level
    (DEBUG, WARN, ERROR) is logged.
    """
    settings = LogSettings.build(
        format=LogFormat.text,
        include_timestamp=timestamp,
        use_utc=utc,
        include_level=level,
        include_caller=caller,
        caller_skip=caller_skip,
    )
    return Logger(sink, settings)
