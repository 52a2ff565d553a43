"""Per-channel delivery policy."""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

from modules.notifications.models import NotificationType

if TYPE_CHECKING:
    from infrastructure.configuration import DeliverySettings


@dataclass(frozen=True)
class DeliveryPolicy:
    """Retry and concurrency settings for one channel.

    Attributes:
        max_attempts: Failed send attempts before the record is failed
        base_delay_seconds: Base delay for exponential backoff
        max_delay_seconds: Cap for exponential backoff
        concurrency: Worker threads for the channel

    Example:
        policy = DeliveryPolicy(max_attempts=5, base_delay_seconds=10)
        policy.backoff_seconds(1)  # 20.0
        policy.backoff_seconds(2)  # 40.0
    """

    max_attempts: int = 3
    base_delay_seconds: float = 30
    max_delay_seconds: float = 3600
    concurrency: int = 4

    def __post_init__(self) -> None:
        """Validate policy values."""
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay_seconds < 0:
            raise ValueError("base_delay_seconds must not be negative")
        if self.max_delay_seconds < self.base_delay_seconds:
            raise ValueError("max_delay_seconds must be >= base_delay_seconds")
        if self.concurrency < 1:
            raise ValueError("concurrency must be at least 1")

    def backoff_seconds(self, retry_count: int) -> float:
        """Delay before the next attempt, ``retry_count`` being the count after the failure."""
        return min(self.base_delay_seconds * (2**retry_count), self.max_delay_seconds)

    @classmethod
    def from_settings(
        cls,
        delivery: "DeliverySettings",
        channel: Union[NotificationType, str],
    ) -> "DeliveryPolicy":
        channel_name = channel.value if isinstance(channel, NotificationType) else channel
        return cls(**delivery.policy_values(channel_name))
