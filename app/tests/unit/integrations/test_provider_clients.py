"""Unit tests for the Brevo, Twilio and FCM REST clients."""

from unittest.mock import MagicMock

import pytest
import requests

from infrastructure.configuration.integrations import (
    BrevoSettings,
    FcmSettings,
    TwilioSettings,
)
from integrations.brevo import client as brevo
from integrations.fcm import client as fcm
from integrations.twilio import client as twilio


def _response(body, status_code=200):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = body
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(str(status_code))
    return response


@pytest.fixture
def brevo_config():
    return BrevoSettings(
        BREVO_API_KEY="xkeysib-test",
        BREVO_API_URL="https://brevo.test/v3",
        BREVO_SENDER_EMAIL="noreply@example.com",
    )


@pytest.fixture
def twilio_config():
    return TwilioSettings(
        TWILIO_ACCOUNT_SID="AC123",
        TWILIO_AUTH_TOKEN="secret",
        TWILIO_FROM_NUMBER="+15550000000",
        TWILIO_API_URL="https://twilio.test/2010-04-01",
    )


@pytest.fixture
def fcm_config():
    return FcmSettings(
        FCM_PROJECT_ID="proj",
        FCM_ACCESS_TOKEN="ya29.token",
        FCM_API_URL="https://fcm.test/v1",
    )


@pytest.mark.unit
class TestBrevoClient:
    def test_create_headers(self, brevo_config):
        headers = brevo.create_headers(brevo_config)
        assert headers["api-key"] == "xkeysib-test"
        assert headers["content-type"] == "application/json"

    def test_create_headers_without_key(self):
        with pytest.raises(ValueError, match="BREVO_API_KEY"):
            brevo.create_headers(BrevoSettings(BREVO_API_KEY=None))

    def test_send_transactional_email(self, monkeypatch, brevo_config):
        post = MagicMock(return_value=_response({"messageId": "<m1@smtp>"}))
        monkeypatch.setattr(brevo.requests, "post", post)
        payload = {"to": [{"email": "a@x.com"}], "subject": "Hi", "htmlContent": "<p/>"}

        result = brevo.send_transactional_email(brevo_config, payload)

        assert result == {"messageId": "<m1@smtp>"}
        args, kwargs = post.call_args
        assert args[0] == "https://brevo.test/v3/smtp/email"
        assert kwargs["json"] == payload
        assert kwargs["timeout"] == brevo_config.BREVO_TIMEOUT_SECONDS

    def test_send_raises_http_errors(self, monkeypatch, brevo_config):
        monkeypatch.setattr(
            brevo.requests, "post", MagicMock(return_value=_response({}, status_code=400))
        )
        with pytest.raises(requests.HTTPError):
            brevo.send_transactional_email(brevo_config, {})

    def test_get_account(self, monkeypatch, brevo_config):
        get = MagicMock(return_value=_response({"email": "ops@example.com"}))
        monkeypatch.setattr(brevo.requests, "get", get)

        assert brevo.get_account(brevo_config) == {"email": "ops@example.com"}
        assert get.call_args.args[0] == "https://brevo.test/v3/account"


@pytest.mark.unit
class TestTwilioClient:
    def test_send_message(self, monkeypatch, twilio_config):
        post = MagicMock(return_value=_response({"sid": "SM1", "status": "queued"}))
        monkeypatch.setattr(twilio.requests, "post", post)

        result = twilio.send_message(
            twilio_config, "+15551234567", "Hello", status_callback="https://svc/cb"
        )

        assert result["sid"] == "SM1"
        args, kwargs = post.call_args
        assert args[0] == "https://twilio.test/2010-04-01/Accounts/AC123/Messages.json"
        assert kwargs["data"] == {
            "To": "+15551234567",
            "From": "+15550000000",
            "Body": "Hello",
            "StatusCallback": "https://svc/cb",
        }
        assert kwargs["auth"] == ("AC123", "secret")

    def test_send_message_without_callback(self, monkeypatch, twilio_config):
        post = MagicMock(return_value=_response({"sid": "SM2"}))
        monkeypatch.setattr(twilio.requests, "post", post)

        twilio.send_message(twilio_config, "+15551234567", "Hello")

        assert "StatusCallback" not in post.call_args.kwargs["data"]

    def test_missing_credentials(self):
        config = TwilioSettings(TWILIO_ACCOUNT_SID=None, TWILIO_AUTH_TOKEN=None)
        with pytest.raises(ValueError):
            twilio.send_message(config, "+15551234567", "Hello")

    def test_get_account(self, monkeypatch, twilio_config):
        get = MagicMock(return_value=_response({"sid": "AC123", "status": "active"}))
        monkeypatch.setattr(twilio.requests, "get", get)

        assert twilio.get_account(twilio_config)["status"] == "active"
        assert get.call_args.args[0].endswith("/Accounts/AC123.json")


@pytest.mark.unit
class TestFcmClient:
    def test_send_message_stringifies_data(self, monkeypatch, fcm_config):
        post = MagicMock(return_value=_response({"name": "projects/proj/messages/1"}))
        monkeypatch.setattr(fcm.requests, "post", post)

        result = fcm.send_message(
            fcm_config, "device-token", "Title", "Body", data={"count": 3, "deep_link": "/x"}
        )

        assert result["name"] == "projects/proj/messages/1"
        args, kwargs = post.call_args
        assert args[0] == "https://fcm.test/v1/projects/proj/messages:send"
        message = kwargs["json"]["message"]
        assert message["token"] == "device-token"
        assert message["notification"] == {"title": "Title", "body": "Body"}
        assert message["data"] == {"count": "3", "deep_link": "/x"}
        assert kwargs["headers"]["Authorization"] == "Bearer ya29.token"

    def test_send_message_without_data(self, monkeypatch, fcm_config):
        post = MagicMock(return_value=_response({"name": "n"}))
        monkeypatch.setattr(fcm.requests, "post", post)

        fcm.send_message(fcm_config, "device-token", "Title", "Body")

        assert "data" not in post.call_args.kwargs["json"]["message"]

    def test_missing_credentials(self):
        with pytest.raises(ValueError):
            fcm.create_headers(FcmSettings(FCM_PROJECT_ID="", FCM_ACCESS_TOKEN=None))
