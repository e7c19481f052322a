"""Configuration bundle shared by the backend adapters."""

from enum import Enum

import typing as t
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import LogConfigError


class LogFormat(str, Enum):
    text = "text"
    json = "json"
    testing = "testing"


class LogSettings(BaseSettings):
    """Immutable options recognised by the backend adapters.

    Each toggle controls whether the matching token appears in emitted
    output at all. Values may also come from ``LG_*`` environment variables.
    """

    model_config = SettingsConfigDict(
        env_prefix="LG_",
        frozen=True,
        extra="forbid",
    )

    format: LogFormat = LogFormat.text
    include_timestamp: bool = True
    use_utc: bool = True
    include_level: bool = True
    include_caller: bool = True
    caller_skip: int = Field(default=0, ge=0)

    @classmethod
    def build(cls, **values: t.Any) -> "LogSettings":
        """Create settings, raising LogConfigError on invalid values."""
        try:
            return cls(**values)
        except ValidationError as e:
            error = e.errors()[0]
            field_name = ".".join(str(p) for p in error.get("loc", ()))
            value = values.get(field_name)
            msg = f"Invalid log setting {field_name!r}: {value!r} ({error['msg']})"
            raise LogConfigError(msg, field_name=field_name, value=value) from e


def parse_format(value: "LogFormat | str") -> LogFormat:
    """Resolve a format selector, failing fast on unknown values."""
    try:
        return LogFormat(value)
    except ValueError as e:
        msg = f"Invalid log format: {value!r}"
        raise LogConfigError(msg, field_name="format", value=value) from e
