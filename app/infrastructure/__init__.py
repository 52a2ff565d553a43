"""Infrastructure modules for the notification service.

Centralized infrastructure components:
- configuration: Settings management (Settings, DeliverySettings, StoreSettings)
- logging: Structured logging (get_module_logger, configure_logging)
- operations: Operation results and error classification
- resilience: Circuit breakers for provider calls
- clients: AWS client layer
- services: Dependency injection services (SettingsDep, get_settings)
"""

# Configuration
from infrastructure.configuration import Settings

# Logging
from infrastructure.logging import get_module_logger

# Operations
from infrastructure.operations.result import OperationResult
from infrastructure.operations.status import OperationStatus

# Dependency Injection Services
from infrastructure.services import SettingsDep, get_settings

__all__ = [
    # Configuration
    "Settings",
    # Logging
    "get_module_logger",
    # Operations
    "OperationResult",
    "OperationStatus",
    # Dependency Injection Services
    "SettingsDep",
    "get_settings",
]
