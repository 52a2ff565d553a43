"""Unit tests for infrastructure.logging.formatters and context."""

import pytest
import structlog

from infrastructure.logging import (
    SENSITIVE_PATTERNS,
    add_app_info,
    bind_request_context,
    clear_request_context,
    get_correlation_id,
    get_module_logger,
    mask_sensitive_data,
    truncate_large_values,
)


@pytest.mark.unit
class TestAddAppInfo:
    def test_adds_name_and_version(self):
        processor = add_app_info("notification-service", "abc123")
        result = processor(None, "info", {"event": "notification_sent"})

        assert result["app_name"] == "notification-service"
        assert result["app_version"] == "abc123"
        assert result["event"] == "notification_sent"

    def test_default_version(self):
        result = add_app_info("notification-service")(None, "info", {"event": "x"})
        assert result["app_version"] == "unknown"


@pytest.mark.unit
class TestMaskSensitiveData:
    """Provider credentials never reach the log output."""

    def test_masks_provider_keys(self):
        processor = mask_sensitive_data()
        result = processor(
            None,
            "info",
            {"event": "x", "api_key": "xkeysib-123", "TWILIO_AUTH_TOKEN": "t0k3n"},
        )
        assert result["api_key"] == "***REDACTED***"
        assert result["TWILIO_AUTH_TOKEN"] == "***REDACTED***"
        assert result["event"] == "x"

    def test_keeps_none_values(self):
        result = mask_sensitive_data()(None, "info", {"password": None})
        assert result["password"] is None

    def test_additional_patterns(self):
        processor = mask_sensitive_data(additional_patterns=frozenset({"recipient"}))
        result = processor(None, "info", {"recipient": "a@x.com", "channel": "email"})
        assert result["recipient"] == "***REDACTED***"
        assert result["channel"] == "email"

    def test_patterns_are_lowercase(self):
        assert all(pattern == pattern.lower() for pattern in SENSITIVE_PATTERNS)


@pytest.mark.unit
class TestTruncateLargeValues:
    def test_truncates_long_strings(self):
        processor = truncate_large_values(max_length=10)
        result = processor(None, "info", {"error": "x" * 25})
        assert result["error"].startswith("x" * 10)
        assert "25 chars total" in result["error"]

    def test_leaves_short_and_non_string_values(self):
        processor = truncate_large_values(max_length=10)
        result = processor(None, "info", {"error": "short", "retry_count": 12345678901})
        assert result == {"error": "short", "retry_count": 12345678901}


@pytest.mark.unit
class TestRequestContext:
    def teardown_method(self):
        clear_request_context()

    def test_binds_and_unbinds_correlation_id(self):
        with bind_request_context(correlation_id="req-1", request_path="/health") as cid:
            assert cid == "req-1"
            assert get_correlation_id() == "req-1"
            assert structlog.contextvars.get_contextvars()["request_path"] == "/health"
        assert get_correlation_id() is None

    def test_generates_correlation_id(self):
        with bind_request_context() as cid:
            assert cid
            assert get_correlation_id() == cid

    def test_extra_context(self):
        with bind_request_context(provider="brevo"):
            assert structlog.contextvars.get_contextvars()["provider"] == "brevo"


@pytest.mark.unit
def test_module_logger_binds_component():
    log = get_module_logger()
    assert log is not None
    bound = log.bind(notification_id="n-1")
    assert bound is not None
