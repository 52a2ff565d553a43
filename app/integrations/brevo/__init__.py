"""Brevo module for sending transactional email."""

from .client import create_headers, get_account, send_transactional_email

__all__ = [
    "create_headers",
    "get_account",
    "send_transactional_email",
]
