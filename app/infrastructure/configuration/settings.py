"""Notification service configuration settings - main aggregator."""

from pydantic_settings import BaseSettings, SettingsConfigDict

# Integration settings
from infrastructure.configuration.integrations import (
    AwsSettings,
    BrevoSettings,
    FcmSettings,
    TwilioSettings,
)

# Infrastructure settings
from infrastructure.configuration.infrastructure import (
    DeliverySettings,
    ServerSettings,
    StoreSettings,
)


class Settings(BaseSettings):
    """Notification service configuration settings - main aggregator.

    Aggregates all domain-specific settings into a single configuration object:

    - **Integrations**: Providers (Brevo, Twilio, FCM) and AWS
    - **Infrastructure**: Record store, delivery pipeline, server

    Environment Variables:
        PREFIX: Environment prefix, empty in production
        LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
        GIT_SHA: Git commit SHA for deployment tracking

    Example:
        ```python
        from infrastructure.services import get_settings

        settings = get_settings()

        if settings.store.backend == "dynamodb":
            table = settings.store.dynamodb_table_name

        api_key = settings.brevo.BREVO_API_KEY
        ```
    """

    # Application-level settings
    PREFIX: str = ""
    LOG_LEVEL: str = "INFO"
    GIT_SHA: str = "Unknown"

    # Integration settings
    aws: AwsSettings
    brevo: BrevoSettings
    twilio: TwilioSettings
    fcm: FcmSettings

    # Infrastructure settings
    server: ServerSettings
    store: StoreSettings
    delivery: DeliverySettings

    @property
    def is_production(self) -> bool:
        """True if PREFIX is empty (production)."""
        return not bool(self.PREFIX)

    def __init__(self, **kwargs):
        """Initialize Settings with automatic subsettings instantiation.

        Args:
            **kwargs: Optional overrides for specific settings sections.
        """
        settings_map = {
            # Integrations
            "aws": AwsSettings,
            "brevo": BrevoSettings,
            "twilio": TwilioSettings,
            "fcm": FcmSettings,
            # Infrastructure
            "server": ServerSettings,
            "store": StoreSettings,
            "delivery": DeliverySettings,
        }

        for setting_name, setting_class in settings_map.items():
            if setting_name not in kwargs:
                kwargs[setting_name] = setting_class()

        super().__init__(**kwargs)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )
