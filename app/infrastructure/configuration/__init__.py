"""Infrastructure configuration module - public API.

Centralized configuration management using Pydantic BaseSettings with
domain-based organization.

Exports:
    Settings: Main settings class (for testing/overrides)
    DeliverySettings: Delivery pipeline settings class
    StoreSettings: Record store settings class

Example:
    ```python
    from infrastructure.services import get_settings

    settings = get_settings()

    backend = settings.store.backend
    max_attempts = settings.delivery.max_attempts

    if settings.is_production:
        # Production-specific logic...
    ```
"""

from infrastructure.configuration.settings import Settings
from infrastructure.configuration.infrastructure.delivery import DeliverySettings
from infrastructure.configuration.infrastructure.store import StoreSettings

__all__ = ["Settings", "DeliverySettings", "StoreSettings"]
