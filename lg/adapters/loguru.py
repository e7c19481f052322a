"""Loguru-based adapter for the lg interface."""

import copy
import json
import sys

import typing as t
from contextlib import suppress
from datetime import UTC, datetime
from loguru._logger import Core as _Core
from loguru._logger import Logger as _Logger

from .._base import (
    BASE_DEPTH,
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

_LOGURU_LEVELS = {
    Level.DEBUG: "DEBUG",
    Level.WARN: "WARNING",
    Level.ERROR: "ERROR",
}
_LG_LEVELS = {v: k.value for k, v in _LOGURU_LEVELS.items()}

# Extra keys owned by the adapter: the bound fields, and the fully rendered
# line handed to loguru's formatter. User fields live inside _FIELDS_KEY, so
# they never collide with either.
_FIELDS_KEY = "lg_fields"
_RENDERED_KEY = "lg_rendered"


def _new_logger() -> _Logger:
    """Create a loguru logger with its own core, independent of loguru.logger."""
    return _Logger(  # type: ignore[no-untyped-call]
        core=_Core(),  # type: ignore[no-untyped-call]
        exception=None,
        depth=0,
        record=False,
        lazy=False,
        colors=False,
        raw=False,
        capture=True,
        patchers=[],
        extra={},
    )


def rfc3339_milli(ts: datetime) -> str:
    """Format ts as RFC 3339 with millisecond precision."""
    return ts.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class RecordRenderer:
    """Loguru format function rendering records per LogSettings.

    Rendering happens in Python and the result is passed through loguru's
    format string as a single extra value, so braces in messages or field
    values are never interpreted by loguru.
    """

    def __init__(self, settings: LogSettings) -> None:
        self.settings = settings

    def __call__(self, record: dict[str, t.Any]) -> str:
        record["extra"][_RENDERED_KEY] = self.render(record)
        return "{extra[" + _RENDERED_KEY + "]}\n"

    def render(self, record: dict[str, t.Any]) -> str:
        level = _LG_LEVELS.get(record["level"].name, record["level"].name)
        fields: Fields = record["extra"].get(_FIELDS_KEY, ())
        if self.settings.format is LogFormat.json:
            return self._render_json(record, level, fields)
        return self._render_text(record, level, fields)

    def _render_text(
        self,
        record: dict[str, t.Any],
        level: str,
        fields: Fields,
    ) -> str:
        settings = self.settings
        parts: list[str] = []
        if settings.include_timestamp:
            parts.append(self._timestamp(record["time"]))
        if settings.include_level:
            parts.append(f"{level:<5}")
        if settings.include_caller:
            parts.append(self._caller(record))
        parts.append(record["message"])
        if fields:
            parts.append(json.dumps(dict(fields), default=safe_str))
        return "\t".join(parts)

    def _render_json(
        self,
        record: dict[str, t.Any],
        level: str,
        fields: Fields,
    ) -> str:
        settings = self.settings
        entry: dict[str, t.Any] = {}
        if settings.include_level:
            entry["level"] = level.lower()
        if settings.include_timestamp:
            entry["timestamp"] = self._timestamp(record["time"])
        if settings.include_caller:
            entry["caller"] = self._caller(record)
        entry["message"] = record["message"]
        entry.update(entry_fields(fields))
        return json.dumps(entry, default=safe_str)

    def _timestamp(self, ts: datetime) -> str:
        if self.settings.use_utc:
            ts = ts.astimezone(UTC)
        if self.settings.format is LogFormat.testing:
            return ts.strftime("%H:%M:%S.%f")
        return rfc3339_milli(ts)

    def _caller(self, record: dict[str, t.Any]) -> str:
        caller = f"{record['file'].name}:{record['line']}:{record['function']}"
        if self.settings.format is LogFormat.testing:
            return f"[{caller}]"
        return caller


class Logger(LogBase):
    """Adapts loguru to the lg interface.

    Each root instance owns a private loguru core with a single handler on
    its sink. Instances derived via ``with_field`` or ``add_caller_skip``
    share that core and carry their own fields and caller skip.
    """

    def __init__(
        self,
        sink: Sink | None = None,
        settings: LogSettings | None = None,
    ) -> None:
        self._settings = settings if settings is not None else LogSettings()
        proto = _new_logger()
        proto.add(  # type: ignore[no-untyped-call]
            sink if sink is not None else sys.stdout,
            level="DEBUG",
            format=RecordRenderer(self._settings),
            colorize=False,
            backtrace=False,
            diagnose=False,
            catch=False,
        )
        # proto is never bound; bound loggers are always rebuilt from it.
        self._proto = proto
        self._impl = proto
        self._fields: Fields = ()
        self._caller_skip = self._settings.caller_skip

    @property
    def settings(self) -> LogSettings:
        return self._settings

    @property
    def fields(self) -> Fields:
        """Structured fields added via with_field, in insertion order."""
        return self._fields

    @property
    def caller_skip(self) -> int:
        return self._caller_skip

    def _emit(self, level: Level, message: str, skip: int = 0) -> None:
        with suppress(Exception):
            depth = BASE_DEPTH + self._caller_skip + skip
            self._impl.opt(depth=depth).log(_LOGURU_LEVELS[level], message)  # type: ignore[no-untyped-call]

    def with_field(self, key: str, value: t.Any) -> Log:
        # Rebuilt from the prototype so the bound extras are exactly self._fields.
        fields = merge_field(self._fields, key, value)
        new_logger = copy.copy(self)
        new_logger._fields = fields
        new_logger._impl = self._proto.bind(**{_FIELDS_KEY: fields})  # type: ignore[no-untyped-call]
        return new_logger

    def add_caller_skip(self, skip: int) -> Log:
        """Return a Log reporting the caller skip frames further up."""
        new_logger = copy.copy(self)
        new_logger._caller_skip = self._caller_skip + skip
        return new_logger

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(format={self._settings.format.value!r}, "
            f"fields={self._fields!r}, caller_skip={self._caller_skip})"
        )


def new() -> Logger:
    """Return a Logger writing text to sys.stdout.

    Timestamp (UTC), level and caller are all reported.
    """
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
    """Return a Logger writing to sink.

    Args:
        sink: Destination with a ``write(str)`` method.
        format: One of "text", "json" or "testing".
        timestamp: Report the timestamp; in UTC if utc is also true.
        utc: Convert timestamps to UTC.
        level: Report the level.
        caller: Report the calling file, line and function.
        caller_skip: Extra frames to skip when resolving the caller.

    Raises:
        LogConfigError: If format or any other option is invalid.
    """
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
    """Backing Log for lg.testing.TestLog.

    The capture wrapper sits one frame between the caller and this Logger,
    hence caller_skip=1.
    """
    return new_with(sink, LogFormat.testing, caller_skip=1)
