"""FCM module for sending push notifications."""

from .client import create_headers, send_message

__all__ = ["create_headers", "send_message"]
