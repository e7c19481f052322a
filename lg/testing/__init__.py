"""A Log that directs its output to a test reporter.

Useful when code under test writes to a Log and the output should show up
with the test's own report. With pytest, enable the plugin and use the
``testlog`` fixture::

    pytest_plugins = ["lg.testing.plugin"]

    def test_me(testlog):
        testlog.debugf("Hello %s", "World")
        testlog.warn("Hello Mars")
        testlog.error("Hello Venus")

TestLog has a strict mode which reports ERROR output as a failure, so the
test fails (but keeps running)::

    def test_me(testlog):
        log = testlog.strict()
        log.warn("Hello Mars")
        log.error("Hello Venus")  # test is marked failed

TestLog does not itself format messages: a backing Log built by a factory
writes into a buffer, which is drained after every call.
"""

import io
import threading

import typing as t
from dataclasses import dataclass, field

from .._base import (
    Closer,
    Fields,
    Level,
    Log,
    add_caller_skip,
    call_for_error,
    merge_field,
)
from ..adapters.loguru import testing_factory

Factory = t.Callable[[io.StringIO], Log]


@t.runtime_checkable
class Reporter(t.Protocol):
    """Reporting sink of a test framework."""

    def info(self, msg: str) -> None: ...
    def failure(self, msg: str) -> None: ...


@dataclass
class RecordingReporter:
    """Reporter keeping every entry in memory."""

    entries: list[str] = field(default_factory=list)
    failures: list[str] = field(default_factory=list)

    def info(self, msg: str) -> None:
        self.entries.append(msg)

    def failure(self, msg: str) -> None:
        self.entries.append(msg)
        self.failures.append(msg)


def strip_line_ending(s: str) -> str:
    """Strip one trailing line terminator, as added by Log impls."""
    if s.endswith("\r\n"):
        return s[:-2]
    return s.removesuffix("\n")


class TestLog:
    """Implements Log, directing output to a Reporter.

    Each leveled call runs the backing Log, drains its buffer and forwards
    the text as one entry. ERROR entries go to ``reporter.failure`` in
    strict mode; everything else goes to ``reporter.info``.
    """

    __test__ = False

    def __init__(
        self,
        reporter: Reporter,
        factory: Factory = testing_factory,
        *,
        strict: bool = False,
        fields: Fields = (),
        caller_skip: int = 0,
    ) -> None:
        self._reporter = reporter
        self._factory = factory
        self._strict = strict
        self._fields = tuple(fields)
        self._caller_skip = caller_skip
        self._lock = threading.Lock()
        self._buf = io.StringIO()

        impl = factory(self._buf)
        for key, value in self._fields:
            impl = impl.with_field(key, value)
        if caller_skip:
            impl = add_caller_skip(impl, caller_skip)
        self._impl = impl

    @property
    def is_strict(self) -> bool:
        return self._strict

    @property
    def fields(self) -> Fields:
        return self._fields

    def strict(self, enabled: bool = True) -> "TestLog":
        """Return a TestLog in the given mode, sharing this one's reporter."""
        return self._derive(strict=enabled)

    def debug(self, *args: t.Any) -> None:
        with self._lock:
            self._impl.debug(*args)
            self._forward(Level.DEBUG)

    def debugf(self, fmt: str, *args: t.Any) -> None:
        with self._lock:
            self._impl.debugf(fmt, *args)
            self._forward(Level.DEBUG)

    def warn(self, *args: t.Any) -> None:
        with self._lock:
            self._impl.warn(*args)
            self._forward(Level.WARN)

    def warnf(self, fmt: str, *args: t.Any) -> None:
        with self._lock:
            self._impl.warnf(fmt, *args)
            self._forward(Level.WARN)

    def error(self, *args: t.Any) -> None:
        """Log at ERROR level; reported as a failure in strict mode."""
        with self._lock:
            self._impl.error(*args)
            self._forward(Level.ERROR)

    def errorf(self, fmt: str, *args: t.Any) -> None:
        """Log at ERROR level; reported as a failure in strict mode."""
        with self._lock:
            self._impl.errorf(fmt, *args)
            self._forward(Level.ERROR)

    def warn_if_error(self, err: BaseException | None) -> None:
        if err is None:
            return
        with self._lock:
            self._impl.warn_if_error(err)
            self._forward(Level.WARN)

    def warn_if_func_error(self, fn: t.Callable[[], t.Any] | None) -> None:
        if fn is None:
            return
        err = call_for_error(fn)
        if err is None:
            return
        with self._lock:
            self._impl.warn_if_error(err)
            self._forward(Level.WARN)

    def warn_if_close_error(self, closer: Closer | None) -> None:
        if closer is None:
            return
        err = call_for_error(closer.close)
        if err is None:
            return
        with self._lock:
            self._impl.warn_if_error(err)
            self._forward(Level.WARN)

    def with_field(self, key: str, value: t.Any) -> "TestLog":
        """Return a TestLog with its own buffer and backing Log.

        The backing Log's with_field returns a new instance, so the field
        cannot be pushed into the existing one.
        """
        return self._derive(fields=merge_field(self._fields, key, value))

    def add_caller_skip(self, skip: int) -> "TestLog":
        return self._derive(caller_skip=self._caller_skip + skip)

    def _derive(self, **overrides: t.Any) -> "TestLog":
        kwargs: dict[str, t.Any] = {
            "strict": self._strict,
            "fields": self._fields,
            "caller_skip": self._caller_skip,
        } | overrides
        return self.__class__(self._reporter, self._factory, **kwargs)

    def _forward(self, level: Level) -> None:
        # Caller holds self._lock.
        output = strip_line_ending(self._buf.getvalue())
        self._buf.seek(0)
        self._buf.truncate(0)
        if not output:
            return
        if self._strict and level is Level.ERROR:
            self._reporter.failure(output)
        else:
            self._reporter.info(output)


__all__ = [
    "Factory",
    "RecordingReporter",
    "Reporter",
    "TestLog",
    "strip_line_ending",
]
