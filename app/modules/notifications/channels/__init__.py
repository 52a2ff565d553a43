"""Channel senders for the notification pipeline."""

from modules.notifications.channels.base import (
    ChannelSender,
    ErrorKind,
    ProviderChannelSender,
    SendOutcome,
)
from modules.notifications.channels.email import EmailSender
from modules.notifications.channels.factory import build_senders
from modules.notifications.channels.in_app import InAppSender
from modules.notifications.channels.push import PushSender
from modules.notifications.channels.sms import SmsSender, normalize_phone_number

__all__ = [
    "ChannelSender",
    "ProviderChannelSender",
    "ErrorKind",
    "SendOutcome",
    "EmailSender",
    "PushSender",
    "SmsSender",
    "InAppSender",
    "build_senders",
    "normalize_phone_number",
]
