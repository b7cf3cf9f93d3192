"""
Google sign-in endpoints
Browser redirect flow plus ID-token sign-in for mobile apps
"""
import json
import logging
import re
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from bridge.core.config import settings
from bridge.core.database import get_db
from bridge.core.errors import AppError, IdentityConflict
from bridge.core.security import create_access_token, create_state_token, verify_state_token
from bridge.services import oauth
from bridge.services.identity import resolve_oauth_identity

logger = logging.getLogger(__name__)

router = APIRouter(tags=["oauth"])

MOBILE_USER_AGENT = re.compile(r"Mobile|Android|iPhone|iPad", re.IGNORECASE)


class GoogleMobileRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id_token: Optional[str] = Field(None, alias="idToken")


def _failure_redirect(reason: Optional[str] = None) -> RedirectResponse:
    params = {"error": "auth_failed"}
    if reason:
        params["reason"] = reason
    return RedirectResponse(f"{settings.FRONTEND_URL}?{urlencode(params)}")


@router.get("/auth/google")
def google_login():
    """
    Start the Google sign-in redirect
    """
    return RedirectResponse(oauth.build_authorization_url(create_state_token()))


@router.get("/auth/google/callback")
def google_callback(
    request: Request,
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """
    Google redirects here; hand the frontend a token or an error
    """
    if error:
        logger.info("[GOOGLE] provider returned error: %s", error)
        return _failure_redirect(error)
    if not code:
        return _failure_redirect("missing_code")
    if not state or not verify_state_token(state):
        logger.warning("[GOOGLE] callback with invalid state")
        return _failure_redirect("invalid_state")

    try:
        profile = oauth.exchange_code(code)
        user = resolve_oauth_identity(db, profile)
    except oauth.OAuthError:
        return _failure_redirect("exchange_failed")
    except IdentityConflict as e:
        logger.warning("[GOOGLE] identity conflict on %s", e.field)
        return _failure_redirect(f"{e.field}_conflict")
    except AppError as e:
        logger.warning("[GOOGLE] sign-in failed: %s", e.message)
        return _failure_redirect(type(e).__name__)

    params = {
        "token": create_access_token(user.id, user.role),
        "user": json.dumps(user.to_public_dict()),
    }
    if MOBILE_USER_AGENT.search(request.headers.get("user-agent", "")):
        params["mobile"] = "true"
    return RedirectResponse(f"{settings.FRONTEND_URL}/auth/callback?{urlencode(params)}")


@router.post("/api/auth/google/mobile")
def google_mobile(body: GoogleMobileRequest, db: Session = Depends(get_db)):
    """
    Sign in with a Google ID token obtained by a mobile app
    """
    profile = oauth.verify_id_token(body.id_token)
    user = resolve_oauth_identity(db, profile)
    return {
        "success": True,
        "message": "Google sign-in successful",
        "token": create_access_token(user.id, user.role),
        "user": user.to_public_dict(),
    }
