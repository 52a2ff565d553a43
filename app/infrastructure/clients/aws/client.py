"""Base AWS client utilities for infrastructure clients.

Provides `get_boto3_client` and `execute_aws_api_call` with the
OperationResult pattern. This module does not read settings at import
time; configuration is passed in by the callers.
"""

import time
from typing import Any, Dict, List, Optional

import boto3  # type: ignore
from botocore.client import BaseClient  # type: ignore
from botocore.exceptions import BotoCoreError, ClientError  # type: ignore
import structlog

from infrastructure.operations.classifiers import classify_aws_error
from infrastructure.operations.result import OperationResult
from infrastructure.operations.status import OperationStatus

logger = structlog.get_logger()


def get_boto3_client(
    service_name: str,
    session_config: Optional[Dict[str, Any]] = None,
    client_config: Optional[Dict[str, Any]] = None,
    role_arn: Optional[str] = None,
    session_name: str = "NotificationServiceSession",
) -> BaseClient:
    """Create a boto3 client for the given service.

    Args:
        service_name: AWS service name (e.g., 'dynamodb')
        session_config: Optional boto3 session kwargs (e.g., region_name)
        client_config: Optional client kwargs (e.g., endpoint_url)
        role_arn: Optional role to assume
        session_name: Name for assumed role session

    Returns:
        botocore client instance
    """
    session_config = session_config or {}
    client_config = client_config or {}

    if role_arn:
        sts = boto3.client("sts")
        assumed = sts.assume_role(RoleArn=role_arn, RoleSessionName=session_name)
        creds = assumed["Credentials"]
        session = boto3.Session(
            aws_access_key_id=creds["AccessKeyId"],
            aws_secret_access_key=creds["SecretAccessKey"],
            aws_session_token=creds["SessionToken"],
            **session_config,
        )
    else:
        session = boto3.Session(**session_config)

    return session.client(service_name, **client_config)


def _calculate_retry_delay(attempt: int, backoff_factor: float = 0.5) -> float:
    return backoff_factor * (2**attempt)


def _call_api_once(
    service_name: str,
    method: str,
    role_arn: Optional[str],
    session_config: Optional[Dict[str, Any]],
    client_config: Optional[Dict[str, Any]],
    force_paginate: bool,
    kwargs: Dict[str, Any],
) -> Any:
    client = get_boto3_client(
        service_name,
        session_config=session_config,
        client_config=client_config,
        role_arn=role_arn,
    )

    if force_paginate and client.can_paginate(method):
        paginator = client.get_paginator(method)
        items: List[Any] = []
        for page in paginator.paginate(**kwargs):
            items.extend(page.get("Items", []))
        return {"Items": items, "Count": len(items)}

    return getattr(client, method)(**kwargs)


def execute_aws_api_call(
    service_name: str,
    method: str,
    role_arn: Optional[str] = None,
    session_config: Optional[Dict[str, Any]] = None,
    client_config: Optional[Dict[str, Any]] = None,
    max_retries: int = 3,
    force_paginate: bool = False,
    backoff_factor: float = 0.5,
    **kwargs,
) -> OperationResult:
    """Execute an AWS API call with retries and standardized results.

    Throttling and connection errors are retried with exponential backoff.
    The final failure is classified with ``classify_aws_error`` so callers
    can tell a conditional check failure from an unreachable service.

    Args mirror `boto3` call parameters; the function returns an
    `OperationResult` object for consistent downstream handling.
    """
    for attempt in range(max_retries + 1):
        try:
            result = _call_api_once(
                service_name,
                method,
                role_arn,
                session_config,
                client_config,
                force_paginate,
                kwargs,
            )
            return OperationResult.success(
                data=result, message=f"{service_name}.{method} succeeded"
            )

        except (ClientError, BotoCoreError) as e:
            mapped = classify_aws_error(e)

            if (
                mapped.status == OperationStatus.TRANSIENT_ERROR
                and attempt < max_retries
            ):
                delay = _calculate_retry_delay(attempt, backoff_factor)
                logger.warning(
                    "aws_api_retry",
                    service=service_name,
                    method=method,
                    attempt=attempt + 1,
                    error=str(e),
                    delay=delay,
                )
                time.sleep(delay)
                continue

            if mapped.error_code != "ConditionalCheckFailedException":
                logger.error(
                    "aws_api_error_final",
                    service=service_name,
                    method=method,
                    error=str(e),
                    error_code=mapped.error_code,
                )
            return mapped

    return OperationResult.transient_error(
        f"{service_name}.{method} exhausted retries", error_code="RETRIES_EXHAUSTED"
    )
