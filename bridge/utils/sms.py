"""
SMS utilities for sending OTP codes
"""
import logging
import requests
from bridge.core.config import settings

logger = logging.getLogger(__name__)


def is_sms_configured() -> bool:
    return bool(settings.SMS_API_KEY)


def send_otp_sms(phone: str, code: str) -> dict:
    """
    Send OTP via configured provider

    Returns: {'success': bool, 'message_id': str} or {'success': False, 'error': str}
    """
    if settings.SMS_GATEWAY_DEFAULT == "fast2sms":
        return send_fast2sms_otp(phone, code)

    # Add other providers here
    return {"success": False, "error": f"Unknown provider {settings.SMS_GATEWAY_DEFAULT}"}


def send_fast2sms_otp(phone: str, code: str) -> dict:
    """
    Send OTP via Fast2SMS API (takes 10-digit Indian numbers)
    """
    api_key = settings.SMS_API_KEY
    if not api_key:
        return {"success": False, "error": "SMS API key not configured"}

    number = phone[3:] if phone.startswith("+91") else phone

    try:
        response = requests.post(
            settings.SMS_API_URL,
            json={
                "variables_values": code,
                "route": "otp",
                "numbers": number
            },
            headers={"authorization": api_key},
            timeout=settings.SMS_TIMEOUT
        )
        response.raise_for_status()
        data = response.json()
    except requests.Timeout:
        logger.warning("Fast2SMS timed out after %ss", settings.SMS_TIMEOUT)
        return {"success": False, "error": "SMS provider timed out"}
    except (requests.RequestException, ValueError) as e:
        logger.warning("Fast2SMS request failed: %s", e)
        return {"success": False, "error": str(e)}

    if data.get("return") is not True:
        logger.warning("Fast2SMS rejected message: %s", data.get("message"))
        return {"success": False, "error": str(data.get("message") or "SMS provider rejected the message")}

    return {
        "success": True,
        "message_id": str(data.get("request_id", ""))
    }
