"""
Google OAuth client
Authorization URL, code exchange and ID-token verification over plain HTTPS.
"""
import logging
from urllib.parse import urlencode

import requests

from bridge.core.config import settings
from bridge.core.errors import ServiceUnavailable, Unauthorized
from bridge.services.identity import OAuthProfile

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v3/userinfo"
GOOGLE_TOKENINFO_URL = "https://oauth2.googleapis.com/tokeninfo"
GOOGLE_ISSUERS = ("accounts.google.com", "https://accounts.google.com")


class OAuthError(Exception):
    """The provider refused or returned something unusable"""


def _require_configured():
    if not settings.google_oauth_enabled:
        raise ServiceUnavailable("Google sign-in is not configured")


def build_authorization_url(state: str) -> str:
    _require_configured()
    params = {
        "client_id": settings.GOOGLE_CLIENT_ID,
        "redirect_uri": settings.GOOGLE_CALLBACK_URL,
        "response_type": "code",
        "scope": "openid email profile",
        "state": state,
        "access_type": "offline",
        "prompt": "select_account",
    }
    return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"


def _profile_from_claims(claims: dict) -> OAuthProfile:
    """
    Build the profile from userinfo or tokeninfo claims.
    The email is kept only when Google marks it verified; userinfo sends a
    boolean and tokeninfo the string "true".
    """
    subject = claims.get("sub")
    if not subject:
        raise OAuthError("Google profile has no subject id")
    email_verified = str(claims.get("email_verified", "")).lower() == "true"
    return OAuthProfile(
        subject_id=str(subject),
        email=claims.get("email") if email_verified else None,
        display_name=claims.get("name"),
        photo=claims.get("picture"),
    )


def exchange_code(code: str) -> OAuthProfile:
    """
    Swap an authorization code for the signed-in user's profile
    """
    _require_configured()
    try:
        token_response = requests.post(
            GOOGLE_TOKEN_URL,
            data={
                "client_id": settings.GOOGLE_CLIENT_ID,
                "client_secret": settings.GOOGLE_CLIENT_SECRET,
                "code": code,
                "redirect_uri": settings.GOOGLE_CALLBACK_URL,
                "grant_type": "authorization_code",
            },
            headers={"Accept": "application/json"},
            timeout=settings.OAUTH_TIMEOUT,
        )
        token_response.raise_for_status()
        access_token = token_response.json().get("access_token")
        if not access_token:
            raise OAuthError("Google returned no access token")

        userinfo_response = requests.get(
            GOOGLE_USERINFO_URL,
            headers={"Authorization": f"Bearer {access_token}"},
            timeout=settings.OAUTH_TIMEOUT,
        )
        userinfo_response.raise_for_status()
        claims = userinfo_response.json()
    except (requests.RequestException, ValueError) as e:
        logger.warning("[GOOGLE] code exchange failed: %s", e)
        raise OAuthError(str(e)) from e

    if not isinstance(claims, dict):
        raise OAuthError("Unexpected userinfo payload")
    return _profile_from_claims(claims)


def verify_id_token(id_token: str) -> OAuthProfile:
    """
    Validate a Google ID token (mobile sign-in) with Google's tokeninfo endpoint
    """
    _require_configured()
    if not id_token:
        raise Unauthorized("Google ID token is required")

    try:
        response = requests.get(
            GOOGLE_TOKENINFO_URL,
            params={"id_token": id_token},
            timeout=settings.OAUTH_TIMEOUT,
        )
    except requests.RequestException as e:
        logger.warning("[GOOGLE] tokeninfo unreachable: %s", e)
        raise ServiceUnavailable("Google sign-in is temporarily unavailable") from e

    if response.status_code != 200:
        raise Unauthorized("Invalid Google ID token")

    try:
        claims = response.json()
    except ValueError as e:
        raise Unauthorized("Invalid Google ID token") from e

    if claims.get("aud") != settings.GOOGLE_CLIENT_ID or claims.get("iss") not in GOOGLE_ISSUERS:
        raise Unauthorized("Google ID token was not issued for this application")

    try:
        return _profile_from_claims(claims)
    except OAuthError as e:
        raise Unauthorized("Invalid Google ID token") from e
