"""Unit tests for structured logging configuration."""

from __future__ import annotations

import json

import pytest

from core.errors import StrataConfigError
from core.logging_config import configure_logging, get_logger


@pytest.fixture(autouse=True)
def _restore_default_level():
    yield
    configure_logging()


def test_events_are_json_lines_on_stderr(capsys) -> None:
    """Log events should be JSON lines written to stderr only."""
    configure_logging("info")
    get_logger("tests.logging").info("probe_event", path="items")
    captured = capsys.readouterr()

    assert captured.out == "" and json.loads(captured.err)["event"] == "probe_event"


def test_level_filters_lower_events(capsys) -> None:
    """Events below the configured level should be dropped."""
    configure_logging("warning")
    get_logger("tests.logging").info("quiet_event")

    assert capsys.readouterr().err == ""


def test_unknown_level_is_rejected() -> None:
    """Unknown level names should raise a config error."""
    with pytest.raises(StrataConfigError, match="verbose"):
        configure_logging("verbose")
