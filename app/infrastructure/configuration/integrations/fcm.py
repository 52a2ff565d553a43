"""Firebase Cloud Messaging integration settings."""

from pydantic import Field

from infrastructure.configuration.base import IntegrationSettings


class FcmSettings(IntegrationSettings):
    """FCM HTTP v1 API configuration.

    Environment Variables:
        FCM_PROJECT_ID: Firebase project id
        FCM_ACCESS_TOKEN: OAuth2 bearer token for the messaging scope
        FCM_API_URL: API base URL (default: https://fcm.googleapis.com/v1)
        FCM_TIMEOUT_SECONDS: HTTP timeout for a single call
    """

    FCM_PROJECT_ID: str = Field(default="", alias="FCM_PROJECT_ID")
    FCM_ACCESS_TOKEN: str | None = Field(default=None, alias="FCM_ACCESS_TOKEN")
    FCM_API_URL: str = Field(default="https://fcm.googleapis.com/v1", alias="FCM_API_URL")
    FCM_TIMEOUT_SECONDS: float = Field(default=10, alias="FCM_TIMEOUT_SECONDS")
