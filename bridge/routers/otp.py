"""
Phone OTP endpoints
"""
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from bridge.core.config import settings
from bridge.core.database import get_db
from bridge.core.security import create_access_token
from bridge.middleware.rate_limit import otp_send_limiter, otp_verify_limiter
from bridge.services.identity import find_user_by_phone, resolve_phone_identity
from bridge.services.otp import OtpService, get_otp_service
from bridge.utils.sms import is_sms_configured

router = APIRouter(prefix="/api/otp", tags=["otp"])


class PhoneRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    phone_number: Optional[str] = Field(None, alias="phoneNumber")


class VerifyOtpRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    phone_number: Optional[str] = Field(None, alias="phoneNumber")
    otp: Optional[str] = None
    name: Optional[str] = None


@router.post("/send", dependencies=[Depends(otp_send_limiter)])
def send_otp(body: PhoneRequest, otp_service: OtpService = Depends(get_otp_service)):
    """
    Send a login code to a phone number
    """
    dispatch = otp_service.request_otp(body.phone_number)

    result = {
        "success": True,
        "message": "OTP sent successfully",
        "method": dispatch.method,
        "expiresIn": otp_service.expiry_seconds,
    }
    if not settings.is_production:
        result["otp"] = dispatch.code
    return result


@router.post("/verify", dependencies=[Depends(otp_verify_limiter)])
def verify_otp(
    body: VerifyOtpRequest,
    db: Session = Depends(get_db),
    otp_service: OtpService = Depends(get_otp_service),
):
    """
    Check the code, then log in or create the account for that phone
    """
    phone = otp_service.verify_otp(body.phone_number, body.otp)
    user, is_new_user = resolve_phone_identity(db, phone, body.name)

    return {
        "success": True,
        "message": "Registration successful" if is_new_user else "Login successful",
        "token": create_access_token(user.id, user.role),
        "isNewUser": is_new_user,
        "user": user.to_public_dict(),
    }


@router.post("/check")
def check_phone(body: PhoneRequest, db: Session = Depends(get_db)):
    """
    Is this phone number already registered?
    """
    phone = OtpService.normalize_phone(body.phone_number)
    exists = find_user_by_phone(db, phone) is not None
    return {"success": True, "exists": exists, "isNewUser": not exists}


@router.get("/health")
async def otp_health():
    return {
        "success": True,
        "provider": settings.SMS_GATEWAY_DEFAULT,
        "configured": is_sms_configured(),
        "mockFallback": settings.otp_mock_fallback_enabled,
    }
