"""Operation status enumeration.

Status codes shared by provider integrations, the AWS client layer and the
channel senders so that outcomes can be classified as retryable or not.
"""

from enum import Enum


class OperationStatus(Enum):
    """Status codes for operation results.

    Attributes:
        SUCCESS: Operation completed successfully
        TRANSIENT_ERROR: Retryable error (network, timeout, rate limit, 5xx)
        PERMANENT_ERROR: Non-retryable error (validation, rejected content)
        UNAUTHORIZED: Credentials missing or rejected by the provider
        NOT_FOUND: Resource not found
    """

    SUCCESS = "success"
    TRANSIENT_ERROR = "transient_error"
    PERMANENT_ERROR = "permanent_error"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"

    @property
    def is_retryable(self) -> bool:
        """Only transient errors are worth another attempt."""
        return self is OperationStatus.TRANSIENT_ERROR
