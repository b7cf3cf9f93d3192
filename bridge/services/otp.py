"""
Phone OTP challenges

States per phone number: NONE -> ISSUED -> VERIFIED | EXPIRED | LOCKED.
Pending codes live in an OtpStore; the in-memory store is process-local.
"""
import logging
import threading
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Callable, Dict, Optional

from bridge.core.config import settings
from bridge.core.errors import (
    InvalidCode,
    OtpExpired,
    OtpLocked,
    OtpNotFound,
    ServiceUnavailable,
    ValidationError,
)
from bridge.utils.datetime_utils import utcnow
from bridge.utils.otp import generate_otp, get_otp_expiry, is_otp_expired, otp_matches
from bridge.utils.phone_validator import validate_phone
from bridge.utils.sms import is_sms_configured, send_otp_sms

logger = logging.getLogger(__name__)

INVALID_PHONE_MESSAGE = "Please provide a valid Indian phone number (e.g., +919876543210)"

METHOD_SMS = "sms"
METHOD_MOCK = "mock"
METHOD_MOCK_FALLBACK = "mock_fallback"


@dataclass
class OtpRecord:
    phone: str
    code: str
    expires_at: datetime
    attempts: int = 0


@dataclass
class OtpDispatch:
    phone: str
    code: str
    method: str
    expires_at: datetime


class OtpStore:
    """Key-value store of pending OTP records, keyed by phone number"""

    def get(self, phone: str) -> Optional[OtpRecord]:
        raise NotImplementedError

    def set(self, record: OtpRecord, now: Optional[datetime] = None) -> None:
        """Store `record`; when `now` is given, records expired by then may be dropped"""
        raise NotImplementedError

    def delete(self, phone: str) -> None:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError


class InMemoryOtpStore(OtpStore):
    def __init__(self):
        self._records: Dict[str, OtpRecord] = {}
        self._lock = threading.Lock()

    def get(self, phone: str) -> Optional[OtpRecord]:
        with self._lock:
            record = self._records.get(phone)
            return replace(record) if record else None

    def set(self, record: OtpRecord, now: Optional[datetime] = None) -> None:
        with self._lock:
            if now is not None:
                expired = [p for p, r in self._records.items() if is_otp_expired(r.expires_at, now=now)]
                for p in expired:
                    del self._records[p]
            self._records[record.phone] = replace(record)

    def delete(self, phone: str) -> None:
        with self._lock:
            self._records.pop(phone, None)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def __len__(self):
        with self._lock:
            return len(self._records)


class OtpService:
    def __init__(
        self,
        store: OtpStore,
        sender: Callable[[str, str], dict] = send_otp_sms,
        provider_configured: Callable[[], bool] = is_sms_configured,
        clock: Callable[[], datetime] = utcnow,
        allow_mock: Optional[bool] = None,
        expiry_seconds: Optional[int] = None,
        max_attempts: Optional[int] = None,
    ):
        self.store = store
        self.sender = sender
        self.provider_configured = provider_configured
        self.clock = clock
        self.allow_mock = settings.otp_mock_fallback_enabled if allow_mock is None else allow_mock
        self.expiry_seconds = expiry_seconds or settings.OTP_EXPIRY
        self.max_attempts = max_attempts or settings.OTP_MAX_ATTEMPTS

    @staticmethod
    def normalize_phone(phone: str) -> str:
        is_valid, formatted = validate_phone(phone)
        if not is_valid:
            raise ValidationError(INVALID_PHONE_MESSAGE)
        return formatted

    def _dispatch(self, phone: str, code: str) -> str:
        """Send the code; returns the delivery method used"""
        if self.provider_configured():
            result = self.sender(phone, code)
            if result.get("success"):
                return METHOD_SMS
            if not self.allow_mock:
                logger.error("[OTP] SMS delivery to %s failed and mock fallback is disabled: %s",
                             phone, result.get("error"))
                raise ServiceUnavailable("Failed to send OTP. Please try again later.")
            logger.warning("[OTP] SMS delivery to %s failed (%s), using mock code", phone, result.get("error"))
            return METHOD_MOCK_FALLBACK

        if not self.allow_mock:
            logger.error("[OTP] SMS provider not configured and mock fallback is disabled")
            raise ServiceUnavailable("SMS service is not configured")
        logger.info("[OTP] SMS provider not configured, using mock code for %s", phone)
        return METHOD_MOCK

    def request_otp(self, phone: str) -> OtpDispatch:
        """
        Issue a new code for a phone number, replacing any pending one.
        A resend is just another request.
        """
        phone = self.normalize_phone(phone)
        code = generate_otp()
        method = self._dispatch(phone, code)

        now = self.clock()
        expires_at = get_otp_expiry(now, self.expiry_seconds)
        self.store.set(OtpRecord(phone=phone, code=code, expires_at=expires_at), now=now)

        if not settings.is_production:
            logger.debug("[OTP] code for %s: %s", phone, code)
        logger.info("[OTP] issued for %s via %s", phone, method)
        return OtpDispatch(phone=phone, code=code, method=method, expires_at=expires_at)

    def verify_otp(self, phone: str, code: str) -> str:
        """
        Check a code. On success the record is consumed.

        Returns: the normalized phone number
        Raises: OtpNotFound, OtpExpired, OtpLocked, InvalidCode
        """
        phone = self.normalize_phone(phone)
        if not code:
            raise ValidationError("OTP is required")

        record = self.store.get(phone)
        if record is None:
            raise OtpNotFound()

        if is_otp_expired(record.expires_at, now=self.clock()):
            self.store.delete(phone)
            logger.info("[OTP] expired code for %s", phone)
            raise OtpExpired()

        if record.attempts >= self.max_attempts:
            self.store.delete(phone)
            logger.warning("[OTP] locked out %s after %s attempts", phone, record.attempts)
            raise OtpLocked()

        if not otp_matches(record.code, code):
            record.attempts += 1
            self.store.set(record)
            remaining = max(self.max_attempts - record.attempts, 0)
            logger.info("[OTP] wrong code for %s (%s remaining)", phone, remaining)
            raise InvalidCode(remaining)

        self.store.delete(phone)
        logger.info("[OTP] verified %s", phone)
        return phone


_otp_service: Optional[OtpService] = None


def get_otp_service() -> OtpService:
    """Dependency returning the process-wide OTP service"""
    global _otp_service
    if _otp_service is None:
        _otp_service = OtpService(InMemoryOtpStore())
    return _otp_service
