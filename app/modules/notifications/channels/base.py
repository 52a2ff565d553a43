"""Channel sender abstract base class.

Every channel (email, push, SMS, in-app) implements ``deliver``; callers use
``send``, which never raises and returns a ``SendOutcome``.
"""

from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
import time
from typing import Any, Callable, Dict, List, Optional, Sequence

import requests

from infrastructure.logging import get_module_logger
from infrastructure.operations import OperationResult, classify_http_error
from infrastructure.resilience import (
    CircuitBreaker,
    CircuitBreakerOpenError,
    register_circuit_breaker,
)
from modules.notifications.errors import (
    PermanentSendFailure,
    SendFailure,
    TransientSendFailure,
)
from modules.notifications.models import Notification, NotificationType

logger = get_module_logger()


class ErrorKind(Enum):
    """Whether a failed send is worth retrying."""

    TRANSIENT = "transient"
    PERMANENT = "permanent"


@dataclass(frozen=True)
class SendOutcome:
    """Result of one send attempt.

    Attributes:
        success: True if the provider accepted the message
        external_id: Provider message id (success only)
        error_kind: Failure classification (failure only)
        error_message: Human-readable failure reason (failure only)
        error_code: Machine error code (failure only)
    """

    success: bool
    external_id: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    error_message: Optional[str] = None
    error_code: Optional[str] = None

    @classmethod
    def ok(cls, external_id: str) -> "SendOutcome":
        return cls(success=True, external_id=external_id)

    @classmethod
    def failure(
        cls,
        error_kind: ErrorKind,
        error_message: str,
        error_code: Optional[str] = None,
    ) -> "SendOutcome":
        return cls(
            success=False,
            error_kind=error_kind,
            error_message=error_message,
            error_code=error_code,
        )

    @property
    def is_permanent(self) -> bool:
        return self.error_kind is ErrorKind.PERMANENT


class ChannelSender(ABC):
    """Abstract base class for channel senders.

    Senders never mutate the notification record; the worker applies the
    outcome through the store. A sender may be called twice for the same
    notification (at-least-once delivery).

    Example Implementation:
        class PagerSender(ChannelSender):

            @property
            def channel(self) -> NotificationType:
                return NotificationType.PUSH

            def deliver(self, notification: Notification) -> str:
                response = pager.send(notification.recipient, notification.content)
                return response["id"]

            def health_check(self) -> OperationResult:
                return OperationResult.success(message="Pager reachable")
    """

    def __init__(self, bulk_delay_seconds: float = 0.1):
        self.bulk_delay_seconds = bulk_delay_seconds

    @property
    @abstractmethod
    def channel(self) -> NotificationType:
        """Notification type handled by this sender."""

    @abstractmethod
    def deliver(self, notification: Notification) -> str:
        """Send one notification and return the provider message id.

        Raises:
            TransientSendFailure: Retryable provider failure
            PermanentSendFailure: Invalid recipient or rejected content
        """

    @abstractmethod
    def health_check(self) -> OperationResult:
        """Check provider connectivity and credentials."""

    def send(self, notification: Notification) -> SendOutcome:
        """Send one notification. Never raises.

        Unexpected exceptions are reported as transient failures.
        """
        log = logger.bind(
            channel=self.channel.value,
            notification_id=notification.id,
        )
        try:
            external_id = self.deliver(notification)
        except PermanentSendFailure as e:
            log.warning("send_failed_permanent", error=str(e), error_code=e.error_code)
            return SendOutcome.failure(ErrorKind.PERMANENT, str(e), e.error_code)
        except SendFailure as e:
            log.warning("send_failed_transient", error=str(e), error_code=e.error_code)
            return SendOutcome.failure(ErrorKind.TRANSIENT, str(e), e.error_code)
        except Exception as e:  # pylint: disable=broad-except
            log.exception("send_failed_unexpected", error=str(e))
            return SendOutcome.failure(
                ErrorKind.TRANSIENT, f"{type(e).__name__}: {e}", "UNEXPECTED_ERROR"
            )

        log.info("send_succeeded", external_id=external_id)
        return SendOutcome.ok(external_id)

    def send_bulk(
        self,
        notifications: Sequence[Notification],
        delay_seconds: Optional[float] = None,
        max_workers: int = 1,
    ) -> List[SendOutcome]:
        """Send several notifications; outcomes are in input order.

        Sequential by default with ``delay_seconds`` between calls. With
        ``max_workers > 1`` sends run in a bounded thread pool and the delay
        is applied between submissions.
        """
        delay = self.bulk_delay_seconds if delay_seconds is None else delay_seconds

        if max_workers <= 1:
            outcomes: List[SendOutcome] = []
            for index, notification in enumerate(notifications):
                if index and delay > 0:
                    time.sleep(delay)
                outcomes.append(self.send(notification))
            return outcomes

        with ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix=f"bulk-{self.channel.value}",
        ) as executor:
            futures = []
            for index, notification in enumerate(notifications):
                if index and delay > 0:
                    time.sleep(delay)
                futures.append(executor.submit(self.send, notification))
            return [future.result() for future in futures]


def _trips_breaker(exc: Exception) -> bool:
    return not isinstance(exc, PermanentSendFailure)


class ProviderChannelSender(ChannelSender):
    """Channel sender backed by a remote provider API.

    Provider calls go through a registered circuit breaker. ``requests``
    exceptions are classified with ``classify_http_error``; missing
    credentials (``ValueError`` from the integration helpers) are permanent.

    Args:
        provider: Provider name used for logs and the circuit breaker name
        failure_threshold: Consecutive transient failures before opening
        timeout_seconds: Seconds the circuit stays open before probing
    """

    def __init__(
        self,
        provider: str,
        bulk_delay_seconds: float = 0.1,
        failure_threshold: int = 5,
        timeout_seconds: float = 60,
    ):
        super().__init__(bulk_delay_seconds=bulk_delay_seconds)
        self.provider = provider
        self._circuit_breaker = register_circuit_breaker(
            CircuitBreaker(
                name=f"{provider}_{self.channel.value}_channel",
                failure_threshold=failure_threshold,
                timeout_seconds=timeout_seconds,
                counts_as_failure=_trips_breaker,
            )
        )

    @property
    def circuit_breaker(self) -> CircuitBreaker:
        return self._circuit_breaker

    def _invoke(self, func: Callable[..., Dict[str, Any]], *args, **kwargs) -> Dict[str, Any]:
        try:
            return func(*args, **kwargs)
        except requests.RequestException as e:
            result = classify_http_error(e, provider=self.provider)
            if result.is_transient:
                raise TransientSendFailure(result.message, result.error_code) from e
            raise PermanentSendFailure(result.message, result.error_code) from e
        except ValueError as e:
            raise PermanentSendFailure(
                f"{self.provider} is not configured: {e}", error_code="MISSING_CREDENTIALS"
            ) from e

    def _call_provider(
        self, func: Callable[..., Dict[str, Any]], *args, **kwargs
    ) -> Dict[str, Any]:
        """Call a provider helper through the circuit breaker.

        Raises:
            TransientSendFailure: Open circuit, timeouts, 429, 5xx
            PermanentSendFailure: Missing credentials, other 4xx
        """
        try:
            return self._circuit_breaker.call(self._invoke, func, *args, **kwargs)
        except CircuitBreakerOpenError as e:
            raise TransientSendFailure(str(e), error_code="CIRCUIT_OPEN") from e

    def _health_from(self, func: Callable[..., Dict[str, Any]], *args) -> OperationResult:
        try:
            func(*args)
        except requests.RequestException as e:
            return classify_http_error(e, provider=self.provider)
        except ValueError as e:
            return OperationResult.permanent_error(
                f"{self.provider} is not configured: {e}", error_code="MISSING_CREDENTIALS"
            )
        return OperationResult.success(
            data={"provider": self.provider, "circuit": self._circuit_breaker.state.value},
            message=f"{self.provider} reachable",
        )
