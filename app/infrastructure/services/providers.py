"""
Factory functions for dependency injection.

Provides application-scoped singleton providers for core infrastructure services.
"""

from functools import lru_cache

from infrastructure.configuration import Settings
from infrastructure.clients.aws import DynamoDBClient, SessionProvider


@lru_cache
def get_settings() -> Settings:
    """
    Get application-scoped settings singleton.

    This is the single source of truth for settings across the application.
    The @lru_cache decorator ensures only ONE instance is created per process.

    Infrastructure packages use this directly:
        from infrastructure.services.providers import get_settings
        settings = get_settings()

    Route handlers use the DI type alias for testability:
        from infrastructure.services import SettingsDep
        @router.get("/config")
        def get_config(settings: SettingsDep):
            return settings.GIT_SHA

    Returns:
        Settings: Cached settings instance loaded from environment.
    """
    return Settings()


@lru_cache
def get_dynamodb_client() -> DynamoDBClient:
    """Provider for the DynamoDB client used by the notification store.

    Region, endpoint and optional role come from ``settings.aws``. Credentials
    are resolved per API call, so caching the client is safe.

    Returns:
        DynamoDBClient: Configured client returning OperationResult objects
    """
    settings = get_settings()
    session_provider = SessionProvider(
        region=settings.aws.AWS_REGION,
        service_role_map=settings.aws.SERVICE_ROLE_MAP,
        endpoint_url=settings.aws.ENDPOINT_URL,
    )
    return DynamoDBClient(session_provider=session_provider)
