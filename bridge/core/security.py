"""
Password hashing and signed tokens
"""
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from passlib.context import CryptContext

from bridge.core.config import settings

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)

ACCESS_TOKEN_TYPE = "access"
OAUTH_STATE_TYPE = "oauth_state"


class TokenError(Exception):
    """Token failed signature or claim checks"""


class TokenExpiredError(TokenError):
    """Token signature is fine but it is past its expiry"""


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Stored value is not a recognised hash
        return False


def dummy_verify() -> None:
    """Spend the same time as a real verification when there is no hash to check"""
    pwd_context.dummy_verify()


def _encode(claims: dict, token_type: str, lifetime: timedelta, issued_at: Optional[datetime]) -> str:
    issued_at = issued_at or datetime.now(timezone.utc)
    payload = dict(claims)
    payload.update({
        "typ": token_type,
        "iat": int(issued_at.timestamp()),
        "exp": int((issued_at + lifetime).timestamp()),
        "jti": uuid.uuid4().hex,
    })
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def _decode(token: str, token_type: str) -> dict:
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            options={"require": ["exp", "iat"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise TokenExpiredError("Token expired") from e
    except jwt.InvalidTokenError as e:
        raise TokenError("Invalid token") from e

    if payload.get("typ") != token_type:
        raise TokenError("Invalid token")
    return payload


def create_access_token(user_id: int, role: str = "user", issued_at: Optional[datetime] = None) -> str:
    """
    Issue a session token for a user

    Claims: sub (user id), role, typ, iat, exp (iat + ACCESS_TOKEN_EXPIRE_MINUTES), jti
    """
    lifetime = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return _encode({"sub": str(user_id), "role": role}, ACCESS_TOKEN_TYPE, lifetime, issued_at)


def decode_access_token(token: str) -> dict:
    """
    Verify a session token and return its claims

    Raises TokenExpiredError or TokenError
    """
    payload = _decode(token, ACCESS_TOKEN_TYPE)
    if not payload.get("sub"):
        raise TokenError("Invalid token")
    return payload


def create_state_token(issued_at: Optional[datetime] = None) -> str:
    """Signed OAuth `state` value, so the redirect flow needs no server session"""
    lifetime = timedelta(minutes=settings.OAUTH_STATE_EXPIRE_MINUTES)
    return _encode({}, OAUTH_STATE_TYPE, lifetime, issued_at)


def verify_state_token(state: str) -> bool:
    try:
        _decode(state, OAUTH_STATE_TYPE)
    except TokenError:
        return False
    return True
