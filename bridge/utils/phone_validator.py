"""
Phone number validation utilities
"""
import re
from bridge.core.config import settings


def validate_phone(phone: str) -> tuple[bool, str]:
    """
    Validate Indian mobile number in E.164 form

    Returns: (is_valid, formatted_number)
    Format: +91 followed by 10 digits, the first one 6-9.
    Spaces and hyphens are ignored ("+91 98765-43210" -> "+919876543210").
    """
    if not phone:
        return False, ""

    # Clean phone number
    formatted = re.sub(r"[\s\-]", "", phone)

    # Check pattern
    if not re.fullmatch(settings.PHONE_REGEX, formatted):
        return False, ""

    return True, formatted


def is_valid_phone(phone: str) -> bool:
    """Quick validation check"""
    is_valid, _ = validate_phone(phone)
    return is_valid
