"""DynamoDB client for AWS operations.

Provides access to the DynamoDB operations used by the notification store
(get_item, put_item, update_item, delete_item, query, scan) with consistent
error handling and OperationResult return types.
"""

from typing import Any, Dict, Optional

import structlog

from infrastructure.clients.aws.client import execute_aws_api_call
from infrastructure.clients.aws.session_provider import SessionProvider
from infrastructure.operations.result import OperationResult

logger = structlog.get_logger()


class DynamoDBClient:
    """Client for DynamoDB operations.

    All methods return OperationResult. Failed conditional writes come back
    with ``error_code == "ConditionalCheckFailedException"``.

    Args:
        session_provider: SessionProvider instance for credential/config management
        default_role_arn: Optional role to assume for every call
    """

    def __init__(
        self,
        session_provider: SessionProvider,
        default_role_arn: Optional[str] = None,
    ) -> None:
        self._session_provider = session_provider
        self._default_role_arn = default_role_arn
        self._service_name = "dynamodb"
        self._logger = logger.bind(component="dynamodb_client")

    def _call(self, method: str, **kwargs) -> OperationResult:
        client_kwargs = self._session_provider.build_client_kwargs(
            service_name=self._service_name, role_arn=self._default_role_arn
        )
        return execute_aws_api_call(
            self._service_name,
            method,
            **client_kwargs,
            **kwargs,
        )

    def get_item(
        self, table_name: str, Key: Dict[str, Any], **kwargs
    ) -> OperationResult:
        """Get an item; ``data["Item"]`` is absent when the key does not exist."""
        return self._call("get_item", TableName=table_name, Key=Key, **kwargs)

    def put_item(
        self, table_name: str, Item: Dict[str, Any], **kwargs
    ) -> OperationResult:
        """Put an item (supports ConditionExpression)."""
        return self._call("put_item", TableName=table_name, Item=Item, **kwargs)

    def update_item(
        self, table_name: str, Key: Dict[str, Any], **kwargs
    ) -> OperationResult:
        """Update an item (UpdateExpression, ConditionExpression, ReturnValues)."""
        return self._call("update_item", TableName=table_name, Key=Key, **kwargs)

    def delete_item(
        self, table_name: str, Key: Dict[str, Any], **kwargs
    ) -> OperationResult:
        """Delete an item."""
        return self._call("delete_item", TableName=table_name, Key=Key, **kwargs)

    def query(
        self, table_name: str, KeyConditionExpression: str, **kwargs
    ) -> OperationResult:
        """Query a table or index, following pagination.

        Returns:
            OperationResult with ``{"Items": [...], "Count": n}``
        """
        return self._call(
            "query",
            TableName=table_name,
            KeyConditionExpression=KeyConditionExpression,
            force_paginate=True,
            **kwargs,
        )

    def scan(self, table_name: str, **kwargs) -> OperationResult:
        """Scan a table, following pagination.

        Returns:
            OperationResult with ``{"Items": [...], "Count": n}``
        """
        return self._call("scan", TableName=table_name, force_paginate=True, **kwargs)

    def describe_table(self, table_name: str) -> OperationResult:
        """Cheap reachability check used by store health probes."""
        return self._call("describe_table", TableName=table_name, max_retries=0)
