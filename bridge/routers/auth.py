"""
Authentication endpoints
Email/password registration and login, token check, own profile
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from bridge.core.database import get_db
from bridge.core.errors import NotFound
from bridge.core.security import create_access_token
from bridge.middleware.session import CurrentUser, require_user
from bridge.models import User
from bridge.services.identity import authenticate_user, register_user, store_operation, update_profile

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


class RegisterRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    confirm_password: Optional[str] = Field(None, alias="confirmPassword")


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ProfileUpdateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    display_name: Optional[str] = Field(None, alias="displayName")
    bio: Optional[str] = None
    photo: Optional[str] = None


def _load_user(db: Session, user_id: int) -> User:
    with store_operation(db, "profile"):
        user = db.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    return user


@router.post("/register", status_code=201)
def register(body: RegisterRequest, db: Session = Depends(get_db)):
    """
    Create an account with email and password
    """
    user = register_user(db, body.name, body.email, body.password, body.confirm_password)
    return {
        "success": True,
        "message": "User registered successfully",
        "token": create_access_token(user.id, user.role),
        "user": user.to_public_dict(),
    }


@router.post("/login")
def login(body: LoginRequest, db: Session = Depends(get_db)):
    """
    Email and password login
    """
    user = authenticate_user(db, body.email, body.password)
    return {
        "success": True,
        "message": "Login successful",
        "token": create_access_token(user.id, user.role),
        "user": user.to_public_dict(),
    }


@router.get("/verify")
def verify(current: CurrentUser = Depends(require_user), db: Session = Depends(get_db)):
    """
    Check the bearer token and return the user it belongs to
    """
    user = _load_user(db, current.id)
    return {"valid": True, "success": True, "user": user.to_public_dict()}


@router.get("/profile")
def get_profile(current: CurrentUser = Depends(require_user), db: Session = Depends(get_db)):
    user = _load_user(db, current.id)
    return {"success": True, "user": user.to_public_dict()}


@router.patch("/profile")
def patch_profile(
    body: ProfileUpdateRequest,
    current: CurrentUser = Depends(require_user),
    db: Session = Depends(get_db),
):
    """
    Update own name, display name, bio or photo
    """
    user = update_profile(
        db,
        current.id,
        name=body.name,
        display_name=body.display_name,
        bio=body.bio,
        photo=body.photo,
    )
    logger.info("[profile] user id=%s updated profile", user.id)
    return {"success": True, "message": "Profile updated successfully", "user": user.to_public_dict()}
