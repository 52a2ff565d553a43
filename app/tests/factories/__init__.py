"""Test data factories for deterministic test data generation."""

from tests.factories.notifications import (
    ScriptedSender,
    make_notification,
    make_spec,
)

__all__ = [
    "ScriptedSender",
    "make_notification",
    "make_spec",
]
