"""Twilio SMS integration settings."""

from pydantic import Field

from infrastructure.configuration.base import IntegrationSettings


class TwilioSettings(IntegrationSettings):
    """Twilio Programmable Messaging configuration.

    Environment Variables:
        TWILIO_ACCOUNT_SID: Account SID (basic auth user)
        TWILIO_AUTH_TOKEN: Auth token (basic auth password)
        TWILIO_FROM_NUMBER: Sending phone number in E.164 format
        TWILIO_API_URL: API base URL (default: https://api.twilio.com/2010-04-01)
        TWILIO_STATUS_CALLBACK_ENABLED: Ask Twilio to post delivery status to
            the webhook endpoint (default: True)
        TWILIO_TIMEOUT_SECONDS: HTTP timeout for a single call
    """

    TWILIO_ACCOUNT_SID: str | None = Field(default=None, alias="TWILIO_ACCOUNT_SID")
    TWILIO_AUTH_TOKEN: str | None = Field(default=None, alias="TWILIO_AUTH_TOKEN")
    TWILIO_FROM_NUMBER: str = Field(default="", alias="TWILIO_FROM_NUMBER")
    TWILIO_API_URL: str = Field(
        default="https://api.twilio.com/2010-04-01", alias="TWILIO_API_URL"
    )
    TWILIO_STATUS_CALLBACK_ENABLED: bool = Field(
        default=True, alias="TWILIO_STATUS_CALLBACK_ENABLED"
    )
    TWILIO_TIMEOUT_SECONDS: float = Field(default=10, alias="TWILIO_TIMEOUT_SECONDS")
