"""
Tests for OTP utilities and the OTP service
"""
import pytest
from datetime import datetime, timedelta
from bridge.core.errors import InvalidCode, OtpExpired, OtpLocked, OtpNotFound, ServiceUnavailable, ValidationError
from bridge.services.otp import InMemoryOtpStore, OtpService
from bridge.utils.datetime_utils import utcnow
from bridge.utils.otp import generate_otp, get_otp_expiry, is_otp_expired, otp_matches

from conftest import FakeSmsSender

PHONE = "+919876543210"


def test_generate_otp():
    """Test OTP generation"""
    otp = generate_otp()
    assert len(otp) == 6
    assert otp.isdigit()


def test_generate_otp_keeps_leading_zeros(monkeypatch):
    monkeypatch.setattr("bridge.utils.otp.secrets.randbelow", lambda n: 42)
    assert generate_otp() == "000042"


def test_get_otp_expiry():
    """Test OTP expiry calculation"""
    expiry = get_otp_expiry()
    assert expiry > utcnow()
    # Should be about 5 minutes (300 seconds) in future
    diff = (expiry - utcnow()).total_seconds()
    assert 290 < diff < 310


def test_is_otp_expired():
    """Test OTP expiry check"""
    now = datetime(2024, 1, 1, 12, 0, 0)
    assert is_otp_expired(now - timedelta(seconds=10), now=now) == True
    assert is_otp_expired(now + timedelta(seconds=10), now=now) == False


def test_otp_matches():
    assert otp_matches("123456", "123456")
    assert otp_matches("123456", " 123456 ")
    assert not otp_matches("123456", "654321")
    assert not otp_matches("123456", None)


# ==================== Service ====================

def test_request_stores_record(otp_service, otp_store, clock):
    dispatch = otp_service.request_otp(PHONE)

    record = otp_store.get(PHONE)
    assert record.code == dispatch.code
    assert len(record.code) == 6
    assert record.expires_at == clock.now + timedelta(minutes=5)
    assert record.attempts == 0
    assert dispatch.method == "mock"


def test_request_normalizes_phone(otp_service, otp_store):
    dispatch = otp_service.request_otp("+91 98765 43210")
    assert dispatch.phone == PHONE
    assert otp_store.get(PHONE) is not None


def test_request_invalid_phone(otp_service, otp_store):
    with pytest.raises(ValidationError):
        otp_service.request_otp("12345")
    assert len(otp_store) == 0


def test_new_request_replaces_old(otp_service, otp_store, monkeypatch):
    codes = iter(["111111", "222222"])
    monkeypatch.setattr("bridge.services.otp.generate_otp", lambda: next(codes))

    otp_service.request_otp(PHONE)
    otp_service.request_otp(PHONE)

    assert len(otp_store) == 1
    assert otp_store.get(PHONE).code == "222222"
    with pytest.raises(InvalidCode):
        otp_service.verify_otp(PHONE, "111111")


def test_verify_succeeds_once(otp_service, otp_store):
    """Round trip succeeds exactly once; the record is consumed"""
    dispatch = otp_service.request_otp(PHONE)

    assert otp_service.verify_otp(PHONE, dispatch.code) == PHONE
    assert otp_store.get(PHONE) is None
    with pytest.raises(OtpNotFound):
        otp_service.verify_otp(PHONE, dispatch.code)


def test_verify_without_request(otp_service):
    with pytest.raises(OtpNotFound):
        otp_service.verify_otp(PHONE, "123456")


def test_verify_expired(otp_service, otp_store, clock):
    dispatch = otp_service.request_otp(PHONE)
    clock.advance(301)

    with pytest.raises(OtpExpired):
        otp_service.verify_otp(PHONE, dispatch.code)
    assert otp_store.get(PHONE) is None


def test_verify_at_expiry_boundary(otp_service, clock):
    """Exactly 5 minutes later the code is still good"""
    dispatch = otp_service.request_otp(PHONE)
    clock.advance(300)
    assert otp_service.verify_otp(PHONE, dispatch.code) == PHONE


def test_wrong_code_counts_attempts(otp_service, otp_store, monkeypatch):
    monkeypatch.setattr("bridge.services.otp.generate_otp", lambda: "123456")
    otp_service.request_otp(PHONE)

    with pytest.raises(InvalidCode) as exc_info:
        otp_service.verify_otp(PHONE, "000000")

    assert exc_info.value.remaining_attempts == 2
    assert "2 attempts remaining" in exc_info.value.message
    assert exc_info.value.to_dict()["remainingAttempts"] == 2
    assert otp_store.get(PHONE).attempts == 1


def test_lockout_after_three_wrong_codes(otp_service, otp_store, monkeypatch):
    """Fourth attempt is refused even with the right code"""
    monkeypatch.setattr("bridge.services.otp.generate_otp", lambda: "123456")
    otp_service.request_otp(PHONE)

    remaining = []
    for _ in range(3):
        with pytest.raises(InvalidCode) as exc_info:
            otp_service.verify_otp(PHONE, "000000")
        remaining.append(exc_info.value.remaining_attempts)
    assert remaining == [2, 1, 0]

    with pytest.raises(OtpLocked):
        otp_service.verify_otp(PHONE, "123456")
    assert otp_store.get(PHONE) is None


def test_missing_code(otp_service):
    otp_service.request_otp(PHONE)
    with pytest.raises(ValidationError):
        otp_service.verify_otp(PHONE, "")


# ==================== Dispatch modes ====================

def test_dispatch_via_sms(clock):
    sender = FakeSmsSender()
    service = OtpService(InMemoryOtpStore(), sender=sender, provider_configured=lambda: True,
                         clock=clock, allow_mock=False)

    dispatch = service.request_otp(PHONE)

    assert dispatch.method == "sms"
    assert sender.sent == [(PHONE, dispatch.code)]


def test_dispatch_falls_back_to_mock(clock):
    sender = FakeSmsSender({"success": False, "error": "SMS provider timed out"})
    store = InMemoryOtpStore()
    service = OtpService(store, sender=sender, provider_configured=lambda: True,
                         clock=clock, allow_mock=True)

    dispatch = service.request_otp(PHONE)

    assert dispatch.method == "mock_fallback"
    assert store.get(PHONE).code == dispatch.code


def test_dispatch_failure_without_mock(clock):
    """Provider failure with mock disabled stores nothing"""
    sender = FakeSmsSender({"success": False, "error": "rejected"})
    store = InMemoryOtpStore()
    service = OtpService(store, sender=sender, provider_configured=lambda: True,
                         clock=clock, allow_mock=False)

    with pytest.raises(ServiceUnavailable):
        service.request_otp(PHONE)
    assert len(store) == 0


def test_unconfigured_provider_without_mock(clock):
    service = OtpService(InMemoryOtpStore(), sender=FakeSmsSender(), provider_configured=lambda: False,
                         clock=clock, allow_mock=False)
    with pytest.raises(ServiceUnavailable):
        service.request_otp(PHONE)


def test_store_returns_copies():
    store = InMemoryOtpStore()
    service = OtpService(store, sender=FakeSmsSender(), provider_configured=lambda: False, allow_mock=True)
    service.request_otp(PHONE)

    record = store.get(PHONE)
    record.attempts = 99
    assert store.get(PHONE).attempts == 0


def test_new_request_sweeps_expired_records(otp_service, otp_store, clock):
    otp_service.request_otp(PHONE)
    otp_service.request_otp("+919876543211")
    clock.advance(301)

    otp_service.request_otp("+919876543212")

    assert otp_store.get(PHONE) is None
    assert otp_store.get("+919876543211") is None
    assert otp_store.get("+919876543212") is not None
    assert len(otp_store) == 1


def test_new_request_keeps_live_records(otp_service, otp_store, clock):
    otp_service.request_otp(PHONE)
    clock.advance(120)
    otp_service.request_otp("+919876543211")
    assert len(otp_store) == 2
