"""Configuration error definitions."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Raised when counter tracking is configured inconsistently with the mapping."""
