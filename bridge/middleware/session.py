"""
Bearer-token session check
FastAPI dependencies that resolve the Authorization header to a user
"""
import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from bridge.core.database import STORE_UNAVAILABLE_ERRORS, get_db
from bridge.core.errors import Forbidden, ServiceUnavailable, Unauthorized
from bridge.core.logging_config import mask_token
from bridge.core.security import TokenError, TokenExpiredError, decode_access_token
from bridge.models import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CurrentUser:
    """Identity projection attached to request.state.user"""
    id: int
    email: Optional[str]
    name: Optional[str]
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def extract_bearer_token(authorization: Optional[str]) -> str:
    """
    Pull the token out of an Authorization header.
    "Bearer <token>" (any case) and a bare token are both accepted.
    """
    if not authorization or not authorization.strip():
        raise Unauthorized("Access denied. No token provided.")

    parts = authorization.strip().split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1]
    if len(parts) == 1 and parts[0].lower() != "bearer":
        return parts[0]
    raise Unauthorized("Access denied. Malformed authorization header.")


def authenticate_token(db: Session, token: str) -> CurrentUser:
    try:
        payload = decode_access_token(token)
    except TokenExpiredError:
        raise Unauthorized("Token expired")
    except TokenError:
        logger.info("[AUTH] rejected token %s", mask_token(token))
        raise Unauthorized("Invalid token")

    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise Unauthorized("Invalid token")

    try:
        user = db.get(User, user_id)
    except STORE_UNAVAILABLE_ERRORS as e:
        db.rollback()
        logger.error("[AUTH] database unavailable during token check: %s", e)
        raise ServiceUnavailable() from e

    if user is None or not user.is_active:
        raise Unauthorized("Invalid token or user not found")

    return CurrentUser(id=user.id, email=user.email, name=user.name, role=user.role)


def require_user(
    request: Request,
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
) -> CurrentUser:
    """Require a valid session token"""
    token = extract_bearer_token(authorization)
    current = authenticate_token(db, token)
    request.state.user = current
    return current


def require_admin(current: CurrentUser = Depends(require_user)) -> CurrentUser:
    """Require admin role"""
    if not current.is_admin:
        raise Forbidden()
    return current
