"""Brevo transactional email integration settings."""

from pydantic import Field

from infrastructure.configuration.base import IntegrationSettings


class BrevoSettings(IntegrationSettings):
    """Brevo (ex-Sendinblue) API configuration.

    Environment Variables:
        BREVO_API_KEY: API key sent in the ``api-key`` header
        BREVO_API_URL: API base URL (default: https://api.brevo.com/v3)
        BREVO_SENDER_EMAIL: Sender address (default: noreply@example.com)
        BREVO_SENDER_NAME: Sender display name
        BREVO_TIMEOUT_SECONDS: HTTP timeout for a single call
    """

    BREVO_API_KEY: str | None = Field(default=None, alias="BREVO_API_KEY")
    BREVO_API_URL: str = Field(default="https://api.brevo.com/v3", alias="BREVO_API_URL")
    BREVO_SENDER_EMAIL: str = Field(
        default="noreply@example.com", alias="BREVO_SENDER_EMAIL"
    )
    BREVO_SENDER_NAME: str = Field(default="Notifications", alias="BREVO_SENDER_NAME")
    BREVO_TIMEOUT_SECONDS: float = Field(default=10, alias="BREVO_TIMEOUT_SECONDS")
