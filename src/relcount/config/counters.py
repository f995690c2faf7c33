"""Counter tracking settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import StrEnum
from typing import Final

from .errors import ConfigurationError

PHASE_ENV_VAR: Final[str] = "RELCOUNT_MATERIALIZE_PHASE"


class MaterializePhase(StrEnum):
    """Transaction phase in which queued recounts are executed."""

    AFTER_COMMIT = "after_commit"
    AFTER_FLUSH = "after_flush"


@dataclass(frozen=True, slots=True)
class CounterConfig:
    phase: MaterializePhase = MaterializePhase.AFTER_COMMIT


def parse_phase(value: str) -> MaterializePhase:
    normalized = value.strip().lower().replace("-", "_")
    try:
        return MaterializePhase(normalized)
    except ValueError:
        allowed = ", ".join(phase.value for phase in MaterializePhase)
        raise ConfigurationError(
            f"Invalid {PHASE_ENV_VAR} value {value!r}; expected one of: {allowed}"
        ) from None


def get_counter_config() -> CounterConfig:
    raw_phase = os.getenv(PHASE_ENV_VAR)
    if raw_phase is None or not raw_phase.strip():
        return CounterConfig()
    return CounterConfig(phase=parse_phase(raw_phase))
