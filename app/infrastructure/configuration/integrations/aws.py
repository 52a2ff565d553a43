"""AWS integration settings."""

from pydantic import Field

from infrastructure.configuration.base import IntegrationSettings


class AwsSettings(IntegrationSettings):
    """AWS configuration settings.

    Environment Variables:
        AWS_REGION: AWS region for services (default: ca-central-1)
        AWS_ENDPOINT_URL: Optional endpoint override (LocalStack, DynamoDB Local)
        AWS_DYNAMODB_ROLE_ARN: Optional role to assume for DynamoDB access

    Example:
        ```python
        from infrastructure.services import get_settings

        settings = get_settings()
        region = settings.aws.AWS_REGION
        ```
    """

    AWS_REGION: str = Field(default="ca-central-1", alias="AWS_REGION")
    ENDPOINT_URL: str | None = Field(default=None, alias="AWS_ENDPOINT_URL")
    DYNAMODB_ROLE_ARN: str = Field(default="", alias="AWS_DYNAMODB_ROLE_ARN")

    @property
    def SERVICE_ROLE_MAP(self) -> dict[str, str]:
        """Mapping of service names to their associated role ARNs."""
        if not self.DYNAMODB_ROLE_ARN:
            return {}
        return {"dynamodb": self.DYNAMODB_ROLE_ARN}
