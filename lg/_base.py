"""The Log contract shared by every adapter."""

from abc import ABC, abstractmethod
from enum import Enum

import typing as t
from contextlib import suppress

# Frames between a backend's emit call and the code that called a public
# method: the public method itself, then its caller.
BASE_DEPTH = 2

# Keys an adapter writes into every structured entry.
ENTRY_KEYS = ("level", "timestamp", "caller", "message")

# Stands in for the caller when the stack is shallower than the caller skip.
UNKNOWN_CALLER = "<unknown>:0:<unknown>"

Field = tuple[str, t.Any]
Fields = tuple[Field, ...]


class Level(str, Enum):
    DEBUG = "DEBUG"
    WARN = "WARN"
    ERROR = "ERROR"


@t.runtime_checkable
class Closer(t.Protocol):
    def close(self) -> t.Any: ...


class Sink(t.Protocol):
    """Destination of emitted text; ``flush`` is used when present."""

    def write(self, s: str, /) -> t.Any: ...


@t.runtime_checkable
class Log(t.Protocol):
    """Leveled logging interface with WarnIf helpers.

    No method raises: failures while emitting are swallowed, and errors
    handed to the ``warn_if_*`` methods are logged at WARN.
    """

    def debug(self, *args: t.Any) -> None: ...
    def debugf(self, fmt: str, *args: t.Any) -> None: ...
    def warn(self, *args: t.Any) -> None: ...
    def warnf(self, fmt: str, *args: t.Any) -> None: ...
    def error(self, *args: t.Any) -> None: ...
    def errorf(self, fmt: str, *args: t.Any) -> None: ...

    def warn_if_error(self, err: BaseException | None) -> None: ...
    def warn_if_func_error(self, fn: t.Callable[[], t.Any] | None) -> None: ...
    def warn_if_close_error(self, closer: Closer | None) -> None: ...

    def with_field(self, key: str, value: t.Any) -> "Log": ...


@t.runtime_checkable
class CallerSkipper(t.Protocol):
    """Optional capability of adapters that report the caller."""

    def add_caller_skip(self, skip: int) -> Log: ...


def add_caller_skip(log: Log, skip: int) -> Log:
    """Return log with additional caller skip, or log itself if unsupported."""
    if isinstance(log, CallerSkipper):
        return log.add_caller_skip(skip)
    return log


def _panic(method: str, e: Exception) -> str:
    try:
        detail = str(e)
    except Exception:
        detail = object.__repr__(e)
    return f"%!v(PANIC={method} method: {detail})"


def safe_str(value: t.Any) -> str:
    """Return str(value), or a PANIC marker if ``__str__`` raises."""
    try:
        return str(value)
    except Exception as e:
        return f"{object.__repr__(value)}{_panic('__str__', e)}"


def safe_repr(value: t.Any) -> str:
    """Return repr(value), or a PANIC marker if ``__repr__`` raises."""
    try:
        return repr(value)
    except Exception as e:
        return f"{object.__repr__(value)}{_panic('__repr__', e)}"


def sprint(*args: t.Any) -> str:
    """Concatenate args with no separator."""
    return "".join(safe_str(a) for a in args)


def sprintf(fmt: str, *args: t.Any) -> str:
    """Apply printf-style substitution without ever raising.

    If substitution fails for any reason, including an argument whose
    ``__str__`` or ``__format__`` raises, fmt is returned verbatim followed
    by the arguments in an ``%!(EXTRA ...)`` suffix.
    """
    if not args:
        return fmt
    try:
        return fmt % args
    except Exception:
        extra = ", ".join(safe_repr(a) for a in args)
        return f"{fmt} %!(EXTRA {extra})"


def merge_field(fields: Fields, key: str, value: t.Any) -> Fields:
    """Return fields with key set to value.

    An existing key keeps its position and takes the new value; a new key is
    appended.
    """
    for i, (k, _) in enumerate(fields):
        if k == key:
            return (*fields[:i], (key, value), *fields[i + 1 :])
    return (*fields, (key, value))


def entry_fields(
    fields: Fields,
    reserved: t.Collection[str] = ENTRY_KEYS,
) -> dict[str, t.Any]:
    """Return fields as a dict ready to share a keyspace with an entry.

    A field whose key is reserved is renamed ``fields.<key>``, so it neither
    overwrites nor is overwritten by the key the adapter writes itself.
    """
    return {(f"fields.{k}" if k in reserved else k): v for k, v in fields}


def call_for_error(fn: t.Callable[[], t.Any]) -> BaseException | None:
    """Invoke fn and return the error it raised or returned, if any."""
    try:
        result = fn()
    except Exception as e:
        return e
    if isinstance(result, BaseException):
        return result
    return None


class LogBase(ABC):
    """Implements the Log contract on top of a single ``_emit`` hook.

    Every public method calls ``_emit`` directly, so a backend resolving
    the caller at ``BASE_DEPTH + skip`` frames above its emit call lands on
    the user's call site.
    """

    def debug(self, *args: t.Any) -> None:
        """Log at DEBUG level."""
        self._emit(Level.DEBUG, sprint(*args))

    def debugf(self, fmt: str, *args: t.Any) -> None:
        """Log at DEBUG level."""
        self._emit(Level.DEBUG, sprintf(fmt, *args))

    def warn(self, *args: t.Any) -> None:
        """Log at WARN level."""
        self._emit(Level.WARN, sprint(*args))

    def warnf(self, fmt: str, *args: t.Any) -> None:
        """Log at WARN level."""
        self._emit(Level.WARN, sprintf(fmt, *args))

    def error(self, *args: t.Any) -> None:
        """Log at ERROR level."""
        self._emit(Level.ERROR, sprint(*args))

    def errorf(self, fmt: str, *args: t.Any) -> None:
        """Log at ERROR level."""
        self._emit(Level.ERROR, sprintf(fmt, *args))

    def warn_if_error(self, err: BaseException | None) -> None:
        """No-op if err is None, otherwise err is logged at WARN level."""
        if err is None:
            return
        self._warn_error(err)

    def warn_if_func_error(self, fn: t.Callable[[], t.Any] | None) -> None:
        """No-op if fn is None, otherwise fn is called and its error logged.

        An exception raised by fn, or an exception instance returned by it,
        is logged at WARN level and never propagates.
        """
        if fn is None:
            return
        err = call_for_error(fn)
        if err is None:
            return
        self._warn_error(err)

    def warn_if_close_error(self, closer: Closer | None) -> None:
        """No-op if closer is None, otherwise closer.close() is called.

        Prefer this to ``warn_if_func_error(closer.close)`` when closer may
        be None: binding ``closer.close`` fails before any check can run.
        """
        if closer is None:
            return
        err = call_for_error(closer.close)
        if err is None:
            return
        self._warn_error(err)

    def _warn_error(self, err: BaseException) -> None:
        # One frame deeper than warn(), hence skip=1.
        with suppress(Exception):
            self._emit(Level.WARN, safe_str(err), skip=1)

    @abstractmethod
    def _emit(self, level: Level, message: str, skip: int = 0) -> None:
        """Write message at level, swallowing any backend failure."""
        ...

    @abstractmethod
    def with_field(self, key: str, value: t.Any) -> Log:
        """Return a new Log carrying the field; the receiver is unchanged."""
        ...
