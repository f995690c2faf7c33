from __future__ import annotations

import logging

import pytest

from relcount.config.errors import ConfigurationError
from relcount.config.logging import (
    LOG_FORMAT,
    LOG_LEVEL_ENV_VAR,
    configure_logging,
    resolve_log_level,
)


def test_resolve_log_level_defaults_to_info(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(LOG_LEVEL_ENV_VAR, raising=False)

    assert resolve_log_level() == logging.INFO


def test_resolve_log_level_reads_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(LOG_LEVEL_ENV_VAR, "debug")

    assert resolve_log_level() == logging.DEBUG


def test_resolve_log_level_rejects_unknown_name() -> None:
    with pytest.raises(ConfigurationError, match="Unknown log level"):
        resolve_log_level("chatty")


def test_configure_logging_passes_resolved_level(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[dict[str, object]] = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))

    configure_logging(level="warning", force=True)

    assert calls == [
        {
            "level": logging.WARNING,
            "format": LOG_FORMAT,
            "datefmt": "%H:%M:%S",
            "force": True,
        }
    ]
