"""Twilio module for sending SMS."""

from .client import get_account, send_message

__all__ = ["get_account", "send_message"]
