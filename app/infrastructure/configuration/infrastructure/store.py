"""Notification record store settings."""

from pydantic import Field

from infrastructure.configuration.base import InfrastructureSettings


class StoreSettings(InfrastructureSettings):
    """Notification record store configuration.

    Environment Variables:
        NOTIFICATION_STORE_BACKEND: Backend type - 'memory' or 'dynamodb'
        NOTIFICATION_DYNAMODB_TABLE_NAME: DynamoDB table name (dynamodb backend)
        NOTIFICATION_RETENTION_DAYS: Age after which records are purged by the
            retention job (default: 90 days)

    Store Backends:
        - memory: In-process store (development, testing, single instance)
        - dynamodb: DynamoDB table with conditional writes (production)
    """

    backend: str = Field(
        default="memory",
        alias="NOTIFICATION_STORE_BACKEND",
        description="Record store backend: 'memory' or 'dynamodb'",
    )
    dynamodb_table_name: str = Field(
        default="notifications",
        alias="NOTIFICATION_DYNAMODB_TABLE_NAME",
        description="DynamoDB table name for notification records",
    )
    retention_days: int = Field(
        default=90,
        alias="NOTIFICATION_RETENTION_DAYS",
        description="Records older than this are deleted by the retention job",
    )
