from __future__ import annotations

import logging

import pytest

from nomismap.config import ConfigurationError, configure_logging, get_log_level


def test_log_level_defaults_when_unset(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("NOMISMAP_LOG_LEVEL", raising=False)

    assert get_log_level() == logging.INFO
    assert get_log_level(default=logging.WARNING) == logging.WARNING


def test_log_level_is_case_insensitive(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NOMISMAP_LOG_LEVEL", "debug")

    assert get_log_level() == logging.DEBUG


def test_unknown_log_level_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NOMISMAP_LOG_LEVEL", "chatty")

    with pytest.raises(ConfigurationError, match="chatty"):
        get_log_level()


def test_configure_logging_applies_explicit_level() -> None:
    root = logging.getLogger()
    previous_level = root.level
    previous_handlers = list(root.handlers)
    try:
        configure_logging(level=logging.WARNING, force=True)
        assert root.level == logging.WARNING
    finally:
        for handler in root.handlers:
            root.removeHandler(handler)
        for handler in previous_handlers:
            root.addHandler(handler)
        root.setLevel(previous_level)
