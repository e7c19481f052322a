"""Configuration for pytest testing framework."""

import io
import os

import pytest

pytest_plugins = ["pytester", "lg.testing.plugin"]


@pytest.fixture
def buf() -> io.StringIO:
    """In-memory sink."""
    return io.StringIO()


@pytest.fixture(autouse=True)
def clean_lg_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep LG_* environment variables from leaking into LogSettings."""
    for name in list(os.environ):
        if name.upper().startswith("LG_"):
            monkeypatch.delenv(name)
