"""Error classifiers for provider exceptions.

Converts provider-specific exceptions (requests/HTTP provider APIs, AWS SDK)
into standardized OperationResult objects so channel senders and stores can
decide between retrying and failing for good.

Key Functions:
- classify_http_error(): requests exceptions and HTTP error responses → OperationResult
- classify_aws_error(): AWS SDK errors → OperationResult

Usage:
    from infrastructure.operations.classifiers import classify_http_error

    try:
        response = brevo.send_transactional_email(payload)
    except Exception as exc:
        return classify_http_error(exc, provider="brevo")
"""

from typing import Optional

import requests
from botocore.exceptions import ClientError

from infrastructure.operations.result import OperationResult
from infrastructure.operations.status import OperationStatus

DEFAULT_RETRY_AFTER_SECONDS = 60


def _response_detail(response: Optional[requests.Response]) -> str:
    """Best-effort extraction of the provider's error message."""
    if response is None:
        return ""
    try:
        body = response.json()
    except ValueError:
        return (response.text or "")[:200]
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict):
            return str(error.get("message") or error.get("status") or "")
        return str(body.get("message") or error or body.get("code") or "")
    return str(body)[:200]


def _retry_after(response: Optional[requests.Response]) -> int:
    if response is None:
        return DEFAULT_RETRY_AFTER_SECONDS
    header_value = response.headers.get("Retry-After")
    if header_value:
        try:
            return int(header_value)
        except (ValueError, TypeError):
            pass  # Use default if header is malformed
    return DEFAULT_RETRY_AFTER_SECONDS


def classify_http_error(exc: Exception, provider: str = "provider") -> OperationResult:
    """Classify HTTP provider errors into OperationResult.

    Handles the exceptions raised by ``requests`` when calling provider REST
    APIs. Connection problems and timeouts are transient. HTTP errors are
    mapped by status code.

    Status Code Mapping:
    - 429: Rate limiting → TRANSIENT_ERROR with retry_after
    - 401/403: Credentials rejected → UNAUTHORIZED
    - 404: Not found → NOT_FOUND
    - 408/5xx: Server error → TRANSIENT_ERROR
    - Other 4xx: Rejected request → PERMANENT_ERROR

    Args:
        exc: Exception raised while calling the provider
        provider: Provider name used in messages

    Returns:
        OperationResult with appropriate status, message, error_code, and
        retry_after (if applicable)
    """
    if isinstance(exc, requests.Timeout):
        return OperationResult.transient_error(
            f"{provider} request timed out: {exc}",
            error_code="TIMEOUT",
        )

    if isinstance(exc, requests.ConnectionError):
        return OperationResult.transient_error(
            f"{provider} connection error: {exc}",
            error_code="CONNECTION_ERROR",
        )

    if isinstance(exc, requests.JSONDecodeError):
        return OperationResult.transient_error(
            f"{provider} returned a malformed response: {exc}",
            error_code="INVALID_RESPONSE",
        )

    if not isinstance(exc, requests.HTTPError):
        # Anything else raised around the call is treated as retryable
        return OperationResult.transient_error(
            f"{provider} error: {type(exc).__name__}: {exc}",
            error_code="UNKNOWN_ERROR",
        )

    response = exc.response
    status_code: Optional[int] = response.status_code if response is not None else None
    detail = _response_detail(response)

    if status_code == 429:
        return OperationResult.error(
            OperationStatus.TRANSIENT_ERROR,
            f"{provider} rate limited",
            error_code="RATE_LIMITED",
            retry_after=_retry_after(response),
        )

    if status_code in (401, 403):
        return OperationResult.error(
            OperationStatus.UNAUTHORIZED,
            f"{provider} rejected credentials ({status_code}) {detail}".strip(),
            error_code="UNAUTHORIZED",
        )

    if status_code == 404:
        return OperationResult.error(
            OperationStatus.NOT_FOUND,
            f"{provider} resource not found {detail}".strip(),
            error_code="NOT_FOUND",
        )

    if status_code == 408 or (status_code and 500 <= status_code < 600):
        return OperationResult.transient_error(
            f"{provider} server error ({status_code})",
            error_code="SERVER_ERROR",
        )

    if status_code and 400 <= status_code < 500:
        return OperationResult.permanent_error(
            f"{provider} rejected request ({status_code}): {detail}",
            error_code="HTTP_ERROR",
        )

    return OperationResult.permanent_error(
        f"{provider} error: {exc}",
        error_code="UNKNOWN_ERROR",
    )


def classify_aws_error(exc: Exception) -> OperationResult:
    """Classify AWS SDK errors into OperationResult.

    Follows the AWS SDK convention of treating unknown errors as transient.

    Error Code Mapping:
    - ThrottlingException / ProvisionedThroughputExceededException → TRANSIENT_ERROR
    - AccessDeniedException → UNAUTHORIZED
    - ResourceNotFoundException → NOT_FOUND
    - ConditionalCheckFailedException / ValidationException → PERMANENT_ERROR
    - Other: Unknown error → TRANSIENT_ERROR
    """
    if not isinstance(exc, ClientError):
        # BotoCoreError (connection, endpoint), timeouts, etc.
        return OperationResult.transient_error(
            f"AWS connection error: {type(exc).__name__}: {str(exc)}",
            error_code="CONNECTION_ERROR",
        )

    error_info = exc.response.get("Error", {}) if exc.response else {}
    error_code = error_info.get("Code", "Unknown")
    message = error_info.get("Message", str(exc))

    if error_code in (
        "ThrottlingException",
        "ProvisionedThroughputExceededException",
        "RequestLimitExceeded",
    ):
        return OperationResult.error(
            OperationStatus.TRANSIENT_ERROR,
            "AWS API throttled",
            error_code=error_code,
            retry_after=DEFAULT_RETRY_AFTER_SECONDS,
        )

    if error_code in ("AccessDeniedException", "UnrecognizedClientException"):
        return OperationResult.error(
            OperationStatus.UNAUTHORIZED,
            f"AWS API access denied: {message}",
            error_code=error_code,
        )

    if error_code == "ResourceNotFoundException":
        return OperationResult.error(
            OperationStatus.NOT_FOUND,
            f"AWS resource not found: {message}",
            error_code=error_code,
        )

    if error_code in (
        "ConditionalCheckFailedException",
        "ValidationException",
        "TransactionCanceledException",
    ):
        return OperationResult.permanent_error(message, error_code=error_code)

    return OperationResult.transient_error(
        f"AWS client error: {error_code}: {message}",
        error_code=error_code,
    )
