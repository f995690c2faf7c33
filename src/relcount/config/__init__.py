"""Application configuration helpers."""

from __future__ import annotations

from .counters import CounterConfig, MaterializePhase, get_counter_config, parse_phase
from .errors import ConfigurationError
from .logging import configure_logging, resolve_log_level

__all__ = [
    "ConfigurationError",
    "CounterConfig",
    "MaterializePhase",
    "configure_logging",
    "get_counter_config",
    "parse_phase",
    "resolve_log_level",
]
