"""
Tests for phone validation utility
"""
import pytest
from bridge.utils.phone_validator import validate_phone, is_valid_phone


def test_valid_phone_e164():
    """Test valid +91 number"""
    is_valid, formatted = validate_phone("+919876543210")
    assert is_valid == True
    assert formatted == "+919876543210"


def test_valid_phone_with_spaces_and_hyphens():
    """Spaces and hyphens are stripped"""
    is_valid, formatted = validate_phone("+91 98765-43210")
    assert is_valid == True
    assert formatted == "+919876543210"


def test_invalid_phone_short():
    """Test invalid short phone"""
    is_valid, formatted = validate_phone("+9198765")
    assert is_valid == False
    assert formatted == ""


def test_invalid_phone_wrong_start():
    """Indian mobile numbers start with 6-9"""
    is_valid, _ = validate_phone("+915876543210")
    assert is_valid == False


def test_invalid_phone_missing_country_code():
    is_valid, _ = validate_phone("9876543210")
    assert is_valid == False


@pytest.mark.parametrize("phone", [None, "", "   "])
def test_invalid_phone_empty(phone):
    is_valid, _ = validate_phone(phone)
    assert is_valid == False


def test_is_valid_phone_helper():
    """Test is_valid_phone helper"""
    assert is_valid_phone("+916123456789") == True
    assert is_valid_phone("123") == False
