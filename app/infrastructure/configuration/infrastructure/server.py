"""Server infrastructure settings."""

from typing import List

from pydantic import Field

from infrastructure.configuration.base import InfrastructureSettings


class ServerSettings(InfrastructureSettings):
    """Server and application runtime configuration.

    Environment Variables:
        BACKEND_URL: Public base URL of this service, used to build provider
            status callback URLs (default: http://127.0.0.1:8000)
        CORS_ALLOWED_ORIGINS: Comma separated list of origins allowed outside
            production

    Example:
        ```python
        from infrastructure.services import get_settings

        settings = get_settings()
        callback = f"{settings.server.BACKEND_URL}/api/v1/webhooks/twilio"
        ```
    """

    BACKEND_URL: str = Field(default="http://127.0.0.1:8000", alias="BACKEND_URL")
    CORS_ALLOWED_ORIGINS: str = Field(
        default="http://localhost:8000,http://127.0.0.1:8000",
        alias="CORS_ALLOWED_ORIGINS",
    )

    @property
    def cors_origins(self) -> List[str]:
        """CORS origins as a list."""
        return [
            origin.strip()
            for origin in self.CORS_ALLOWED_ORIGINS.split(",")
            if origin.strip()
        ]
