"""Unit tests for the provider webhook endpoints."""

import pytest
from fastapi.testclient import TestClient

from api.router import api_router
from modules.notifications.models import NotificationStatus, NotificationType
from modules.notifications.service import NotificationService
from utils.tests import create_test_app

S = NotificationStatus


@pytest.fixture
def client(memory_store):
    return TestClient(create_test_app(api_router, service=NotificationService(memory_store)))


@pytest.fixture
def sent_email(memory_store, notification_factory):
    notification = notification_factory(id="n-email", status=S.SENT, external_id="<brevo-1@smtp>")
    memory_store.save(notification)
    return notification


@pytest.fixture
def sent_sms(memory_store, notification_factory):
    notification = notification_factory(
        id="n-sms",
        type=NotificationType.SMS,
        status=S.SENT,
        recipient="+15551234567",
        content="Your code is 1234",
        external_id="SM123",
    )
    memory_store.save(notification)
    return notification


@pytest.mark.unit
class TestBrevoWebhook:
    def test_single_event(self, client, memory_store, sent_email):
        response = client.post(
            "/api/v1/webhooks/brevo",
            json={"event": "delivered", "message-id": "<brevo-1@smtp>", "ts_event": 1740830400},
        )

        assert response.status_code == 200
        assert response.json() == {"ok": True}
        record = memory_store.get(sent_email.id)
        assert record.status == S.DELIVERED
        assert record.delivered_at.timestamp() == 1740830400

    def test_event_list(self, client, memory_store, sent_email):
        response = client.post(
            "/api/v1/webhooks/brevo",
            json=[
                {"event": "delivered", "message-id": "<brevo-1@smtp>"},
                {"event": "opened", "message-id": "<brevo-1@smtp>"},
                {"event": "click", "message-id": "<brevo-1@smtp>"},
            ],
        )

        assert response.status_code == 200
        assert memory_store.get(sent_email.id).status == S.CLICKED

    def test_bounce_records_reason(self, client, memory_store, sent_email):
        client.post(
            "/api/v1/webhooks/brevo",
            json={"event": "hard_bounce", "message-id": "<brevo-1@smtp>", "reason": "mailbox full"},
        )

        record = memory_store.get(sent_email.id)
        assert record.status == S.BOUNCED
        assert record.error_message == "mailbox full"

    def test_duplicate_event_is_ignored(self, client, memory_store, sent_email):
        payload = {"event": "delivered", "message-id": "<brevo-1@smtp>"}
        client.post("/api/v1/webhooks/brevo", json=payload)
        delivered_at = memory_store.get(sent_email.id).delivered_at

        response = client.post("/api/v1/webhooks/brevo", json=payload)

        assert response.status_code == 200
        assert memory_store.get(sent_email.id).delivered_at == delivered_at

    def test_unknown_message_id(self, client):
        response = client.post(
            "/api/v1/webhooks/brevo",
            json={"event": "delivered", "message-id": "<unknown@smtp>"},
        )
        assert response.json() == {"ok": True}

    @pytest.mark.parametrize(
        "body",
        [
            b"not json",
            b'"a string"',
            b'{"event": "delivered"}',
            b'[{"event": "request", "message-id": "x"}]',
        ],
    )
    def test_malformed_or_untracked_payload(self, client, memory_store, sent_email, body):
        response = client.post(
            "/api/v1/webhooks/brevo",
            content=body,
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 200
        assert response.json() == {"ok": True}
        assert memory_store.get(sent_email.id).status == S.SENT

    def test_processing_error_still_acknowledged(self, client, memory_store, monkeypatch):
        def _boom(_):
            raise RuntimeError("store exploded")

        monkeypatch.setattr(memory_store, "get_by_external_id", _boom)

        response = client.post(
            "/api/v1/webhooks/brevo",
            json={"event": "delivered", "message-id": "<brevo-1@smtp>"},
        )

        assert response.status_code == 200
        assert response.json() == {"ok": True}


@pytest.mark.unit
class TestTwilioWebhook:
    def test_delivered(self, client, memory_store, sent_sms):
        response = client.post(
            "/api/v1/webhooks/twilio",
            data={"MessageSid": "SM123", "MessageStatus": "delivered"},
        )

        assert response.status_code == 200
        record = memory_store.get(sent_sms.id)
        assert record.status == S.DELIVERED
        assert record.delivered_at is not None

    def test_undelivered_bounces_with_error_code(self, client, memory_store, sent_sms):
        client.post(
            "/api/v1/webhooks/twilio",
            data={"MessageSid": "SM123", "MessageStatus": "undelivered", "ErrorCode": "30003"},
        )

        record = memory_store.get(sent_sms.id)
        assert record.status == S.BOUNCED
        assert record.error_message == "twilio undelivered: 30003"

    def test_intermediate_status_is_ignored(self, client, memory_store, sent_sms):
        client.post(
            "/api/v1/webhooks/twilio",
            data={"MessageSid": "SM123", "MessageStatus": "sent"},
        )
        assert memory_store.get(sent_sms.id).status == S.SENT

    def test_missing_sid(self, client):
        response = client.post("/api/v1/webhooks/twilio", data={"MessageStatus": "delivered"})
        assert response.status_code == 200
        assert response.json() == {"ok": True}
