"""
OTP generation and verification utilities
"""
import hmac
import secrets
from datetime import datetime, timedelta
from typing import Optional
from bridge.core.config import settings
from bridge.utils.datetime_utils import utcnow


def generate_otp(length: Optional[int] = None) -> str:
    """
    Generate random OTP code

    Returns: 6-digit code (string, leading zeros kept)
    """
    length = length or settings.OTP_LENGTH
    return f"{secrets.randbelow(10 ** length):0{length}d}"


def get_otp_expiry(now: Optional[datetime] = None, seconds: Optional[int] = None) -> datetime:
    """Get expiry datetime for OTP"""
    return (now or utcnow()) + timedelta(seconds=seconds or settings.OTP_EXPIRY)


def is_otp_expired(expires_at: datetime, now: Optional[datetime] = None) -> bool:
    """Check if OTP is expired"""
    return (now or utcnow()) > expires_at


def otp_matches(expected: str, supplied: str) -> bool:
    """Constant-time code comparison"""
    return hmac.compare_digest(expected.encode(), (supplied or "").strip().encode())
