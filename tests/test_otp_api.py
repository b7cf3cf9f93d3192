"""
Tests for phone OTP endpoints
"""
import pytest
from fastapi.testclient import TestClient
from bridge.core.config import settings
from bridge.main import app
from bridge.models import User

client = TestClient(app)

PHONE = "+919876543210"


def send(phone=PHONE):
    return client.post("/api/otp/send", json={"phoneNumber": phone})


def verify(code, phone=PHONE, **extra):
    return client.post("/api/otp/verify", json={"phoneNumber": phone, "otp": code, **extra})


def test_phone_scenario(otp_service, otp_store, clock, monkeypatch):
    """Wrong code first, then the right one creates the account"""
    monkeypatch.setattr("bridge.services.otp.generate_otp", lambda: "482913")

    response = send()
    assert response.status_code == 200
    record = otp_store.get(PHONE)
    assert record.code == "482913"
    assert (record.expires_at - clock.now).total_seconds() == 300

    response = verify("000000")
    assert response.status_code == 400
    data = response.json()
    assert data["remainingAttempts"] == 2
    assert "2 attempts remaining" in data["error"]
    assert otp_store.get(PHONE).attempts == 1

    response = verify("482913")
    assert response.status_code == 200
    data = response.json()
    assert data["isNewUser"] is True
    assert data["token"]
    assert data["user"]["phoneNumber"] == PHONE
    assert data["user"]["isPhoneVerified"] is True
    assert otp_store.get(PHONE) is None


def test_send_response(otp_service):
    data = send().json()
    assert data["success"] is True
    assert data["method"] == "mock"
    assert data["expiresIn"] == 300
    assert len(data["otp"]) == 6


def test_send_hides_code_in_production(otp_service, monkeypatch):
    monkeypatch.setattr(settings, "ENVIRONMENT", "production")
    data = send().json()
    assert "otp" not in data


def test_send_invalid_phone(otp_service):
    response = send("98765")
    assert response.status_code == 400
    assert response.json()["success"] is False


def test_send_missing_phone(otp_service):
    response = client.post("/api/otp/send", json={})
    assert response.status_code == 400


def test_second_verify_is_not_found(otp_service):
    code = send().json()["otp"]
    assert verify(code).status_code == 200

    response = verify(code)
    assert response.status_code == 400
    assert response.json()["error"] == "No OTP found for this number. Please request a new one."


def test_verify_expired(otp_service, clock):
    code = send().json()["otp"]
    clock.advance(5 * 60 + 1)

    response = verify(code)
    assert response.status_code == 400
    assert "expired" in response.json()["error"]


def test_verify_locked(otp_service, monkeypatch):
    monkeypatch.setattr("bridge.services.otp.generate_otp", lambda: "123456")
    send()
    for _ in range(3):
        assert verify("000000").status_code == 400

    response = verify("123456")
    assert response.status_code == 400
    assert response.json()["error"] == "Too many failed attempts. Please request a new OTP."


def test_existing_phone_user_logs_in(otp_service, make_user):
    existing = make_user(name="Priya", phone=PHONE, auth_provider="phone")
    code = send().json()["otp"]

    data = verify(code).json()
    assert data["isNewUser"] is False
    assert data["user"]["id"] == existing.id
    assert data["message"] == "Login successful"


def test_new_phone_user_name(otp_service, db):
    code = send().json()["otp"]
    data = verify(code, name="Ravi Kumar").json()
    assert data["user"]["name"] == "Ravi Kumar"

    code = send("+919000000001").json()["otp"]
    data = verify(code, phone="+919000000001").json()
    assert data["user"]["name"] == "User_0001"


def test_phone_user_not_linked_by_email(otp_service, db, make_user):
    """Phone sign-in never merges into an email account"""
    make_user(email="someone@example.com", password="secret1")
    code = send().json()["otp"]
    verify(code)
    assert db.query(User).count() == 2


def test_send_rate_limit(otp_service):
    for _ in range(settings.RATE_LIMIT_OTP_SEND):
        assert send().status_code == 200

    response = send()
    assert response.status_code == 429
    assert response.json()["success"] is False


def test_verify_rate_limit(otp_service):
    send()
    for _ in range(settings.RATE_LIMIT_OTP_VERIFY):
        verify("000000")

    assert verify("000000").status_code == 429


def test_check_phone(otp_service, make_user):
    response = client.post("/api/otp/check", json={"phoneNumber": PHONE})
    assert response.json() == {"success": True, "exists": False, "isNewUser": True}

    make_user(phone=PHONE, auth_provider="phone")
    response = client.post("/api/otp/check", json={"phoneNumber": "+91 98765 43210"})
    assert response.json()["exists"] is True


def test_otp_health():
    data = client.get("/api/otp/health").json()
    assert data["success"] is True
    assert data["configured"] is False
    assert data["mockFallback"] is True
