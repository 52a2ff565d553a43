"""Operation result types and status enums.

Standardized result types shared by integrations, infrastructure clients and
the notification senders, plus error classifiers for provider exceptions.
"""

from infrastructure.operations.classifiers import (
    classify_aws_error,
    classify_http_error,
)
from infrastructure.operations.result import OperationResult
from infrastructure.operations.status import OperationStatus

__all__ = [
    "OperationResult",
    "OperationStatus",
    "classify_http_error",
    "classify_aws_error",
]
