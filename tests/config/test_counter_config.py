from __future__ import annotations

import pytest

from relcount.config import counters
from relcount.config.counters import CounterConfig, MaterializePhase, parse_phase
from relcount.config.errors import ConfigurationError


def test_default_phase_is_after_commit(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(counters.PHASE_ENV_VAR, raising=False)

    assert counters.get_counter_config() == CounterConfig(phase=MaterializePhase.AFTER_COMMIT)


def test_blank_phase_falls_back_to_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(counters.PHASE_ENV_VAR, "  ")

    assert counters.get_counter_config().phase is MaterializePhase.AFTER_COMMIT


def test_phase_read_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(counters.PHASE_ENV_VAR, "after_flush")

    assert counters.get_counter_config().phase is MaterializePhase.AFTER_FLUSH


@pytest.mark.parametrize("raw", ["AFTER-FLUSH", " after_flush ", "After_Flush"])
def test_parse_phase_normalizes_input(raw: str) -> None:
    assert parse_phase(raw) is MaterializePhase.AFTER_FLUSH


def test_invalid_phase_lists_allowed_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(counters.PHASE_ENV_VAR, "eventually")

    with pytest.raises(ConfigurationError, match="after_commit, after_flush"):
        counters.get_counter_config()
