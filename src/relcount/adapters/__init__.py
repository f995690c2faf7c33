"""Adapters binding the counter engine to persistence frameworks."""
