"""Delivery queue and worker pool settings."""

from typing import Any, Dict

from pydantic import Field

from infrastructure.configuration.base import InfrastructureSettings


class DeliverySettings(InfrastructureSettings):
    """Delivery pipeline configuration.

    Defaults apply to every channel. ``channel_overrides`` replaces individual
    values for one channel.

    Environment Variables:
        DELIVERY_ENABLED: Start the worker pool with the server (default: True)
        DELIVERY_MAX_ATTEMPTS: Send attempts before a record is failed (default: 3)
        DELIVERY_BASE_DELAY_SECONDS: Base exponential backoff delay (default: 30s)
        DELIVERY_MAX_DELAY_SECONDS: Maximum backoff delay (default: 3600s = 1h)
        DELIVERY_CONCURRENCY: Worker threads per channel (default: 4)
        DELIVERY_CHANNEL_OVERRIDES: JSON object keyed by channel, e.g.
            {"sms": {"max_attempts": 5, "concurrency": 2}}
        DELIVERY_DEFER_RECHECK_SECONDS: Longest wait before a scheduled job is
            re-checked (default: 60s)
        DELIVERY_POLL_INTERVAL_SECONDS: Worker queue poll timeout (default: 1s)
        DELIVERY_STORE_PROBE_SECONDS: Interval between store health probes
            while dispatch is halted (default: 5s)
        DELIVERY_BULK_DELAY_SECONDS: Delay between calls in bulk sends (default: 0.1s)

    Exponential Backoff:
        Delay calculation: min(base_delay * (2 ^ retry_count), max_delay)

        Example with defaults (base=30s, max=3600s):
            Retry 1: 60s
            Retry 2: 120s
            Retry 3: 240s
    """

    enabled: bool = Field(default=True, alias="DELIVERY_ENABLED")
    max_attempts: int = Field(default=3, alias="DELIVERY_MAX_ATTEMPTS")
    base_delay_seconds: float = Field(default=30, alias="DELIVERY_BASE_DELAY_SECONDS")
    max_delay_seconds: float = Field(default=3600, alias="DELIVERY_MAX_DELAY_SECONDS")
    concurrency: int = Field(default=4, alias="DELIVERY_CONCURRENCY")
    channel_overrides: Dict[str, Dict[str, Any]] = Field(
        default_factory=dict,
        alias="DELIVERY_CHANNEL_OVERRIDES",
        description="Per-channel policy overrides",
    )
    defer_recheck_seconds: float = Field(
        default=60, alias="DELIVERY_DEFER_RECHECK_SECONDS"
    )
    poll_interval_seconds: float = Field(
        default=1.0, alias="DELIVERY_POLL_INTERVAL_SECONDS"
    )
    store_probe_seconds: float = Field(default=5, alias="DELIVERY_STORE_PROBE_SECONDS")
    bulk_delay_seconds: float = Field(default=0.1, alias="DELIVERY_BULK_DELAY_SECONDS")

    def policy_values(self, channel: str) -> Dict[str, Any]:
        """Policy values for one channel: defaults merged with its overrides."""
        values: Dict[str, Any] = {
            "max_attempts": self.max_attempts,
            "base_delay_seconds": self.base_delay_seconds,
            "max_delay_seconds": self.max_delay_seconds,
            "concurrency": self.concurrency,
        }
        overrides = self.channel_overrides.get(channel) or {}
        values.update({key: value for key, value in overrides.items() if key in values})
        return values
