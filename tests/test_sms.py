"""
Tests for the SMS client
"""
import pytest
import requests
from bridge.core.config import settings
from bridge.utils import sms


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(str(self.status_code))

    def json(self):
        return self.payload


@pytest.fixture
def api_key(monkeypatch):
    monkeypatch.setattr(settings, "SMS_API_KEY", "test-key")


def test_not_configured():
    assert sms.is_sms_configured() is False
    assert sms.send_fast2sms_otp("+919876543210", "123456")["success"] is False


def test_send_success(api_key, monkeypatch):
    calls = []

    def fake_post(url, json=None, headers=None, timeout=None):
        calls.append({"json": json, "headers": headers, "timeout": timeout})
        return FakeResponse({"return": True, "request_id": "req-1"})

    monkeypatch.setattr(sms.requests, "post", fake_post)

    result = sms.send_otp_sms("+919876543210", "123456")

    assert result == {"success": True, "message_id": "req-1"}
    assert calls[0]["json"]["numbers"] == "9876543210"
    assert calls[0]["json"]["variables_values"] == "123456"
    assert calls[0]["headers"]["authorization"] == "test-key"
    assert calls[0]["timeout"] == settings.SMS_TIMEOUT


def test_send_timeout_is_failure(api_key, monkeypatch):
    def fake_post(*args, **kwargs):
        raise requests.Timeout()

    monkeypatch.setattr(sms.requests, "post", fake_post)
    result = sms.send_otp_sms("+919876543210", "123456")
    assert result["success"] is False
    assert "timed out" in result["error"]


def test_send_rejected(api_key, monkeypatch):
    monkeypatch.setattr(sms.requests, "post",
                        lambda *a, **kw: FakeResponse({"return": False, "message": "Invalid route"}))
    result = sms.send_otp_sms("+919876543210", "123456")
    assert result == {"success": False, "error": "Invalid route"}


def test_unknown_gateway(monkeypatch):
    monkeypatch.setattr(settings, "SMS_GATEWAY_DEFAULT", "carrier-pigeon")
    assert sms.send_otp_sms("+919876543210", "123456")["success"] is False
