"""Integration settings __init__ - exports all integration settings."""

from infrastructure.configuration.integrations.aws import AwsSettings
from infrastructure.configuration.integrations.brevo import BrevoSettings
from infrastructure.configuration.integrations.fcm import FcmSettings
from infrastructure.configuration.integrations.twilio import TwilioSettings

__all__ = [
    "AwsSettings",
    "BrevoSettings",
    "FcmSettings",
    "TwilioSettings",
]
