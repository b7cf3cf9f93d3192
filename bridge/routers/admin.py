"""
Admin panel endpoints
User moderation and platform statistics
"""
import logging
import math
from datetime import timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import func
from sqlalchemy.orm import Session

from bridge.core.database import get_db
from bridge.core.errors import NotFound, ValidationError
from bridge.middleware.session import CurrentUser, require_admin
from bridge.models import StartupProfile, UpgradeRequest, User
from bridge.services.identity import search_users, store_operation
from bridge.services.profiles import delete_orphaned_profiles
from bridge.utils.datetime_utils import utcnow

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])

ROLES = ("user", "admin")


class UpdateRoleRequest(BaseModel):
    role: Optional[str] = None


class UpdateStatusRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_active: Optional[bool] = Field(None, alias="isActive")


def _get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    return user


@router.get("/check-admin")
def check_admin(admin: CurrentUser = Depends(require_admin)):
    return {
        "success": True,
        "isAdmin": True,
        "user": {"id": admin.id, "email": admin.email, "name": admin.name, "role": admin.role},
    }


@router.get("/users")
def list_users(
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    """
    List users, newest first (admin only)
    """
    with store_operation(db, "admin users"):
        query = search_users(db, search)
        total = query.count()
        users = (
            query.order_by(User.created_at.desc(), User.id.desc())
            .offset((page - 1) * per_page)
            .limit(per_page)
            .all()
        )

    return {
        "success": True,
        "users": [u.to_public_dict() for u in users],
        "total": total,
        "page": page,
        "per_page": per_page,
    }


@router.patch("/users/{user_id}/role")
def update_role(
    user_id: int,
    body: UpdateRoleRequest,
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    if body.role not in ROLES:
        raise ValidationError("Invalid role. Must be 'user' or 'admin'")
    if user_id == admin.id and body.role != "admin":
        raise ValidationError("You cannot remove your own admin role")

    with store_operation(db, "admin role"):
        user = _get_user(db, user_id)
        user.role = body.role
        db.commit()
        db.refresh(user)

    logger.info("[ADMIN] %s set role of user id=%s to %s", admin.email, user_id, body.role)
    return {"success": True, "message": f"User role updated to {body.role}", "user": user.to_public_dict()}


@router.patch("/users/{user_id}/status")
def update_status(
    user_id: int,
    body: UpdateStatusRequest,
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    """
    Activate or deactivate an account
    """
    if body.is_active is None:
        raise ValidationError("isActive must be true or false")
    if user_id == admin.id:
        raise ValidationError("You cannot change your own account status")

    with store_operation(db, "admin status"):
        user = _get_user(db, user_id)
        user.is_active = body.is_active
        db.commit()
        db.refresh(user)

    state = "activated" if body.is_active else "deactivated"
    logger.info("[ADMIN] %s %s user id=%s", admin.email, state, user_id)
    return {"success": True, "message": f"User {state}", "user": user.to_public_dict()}


@router.delete("/users/{user_id}")
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    """
    Delete a user with their startup profile and upgrade requests
    """
    if user_id == admin.id:
        raise ValidationError("You cannot delete your own account")

    with store_operation(db, "admin delete"):
        user = _get_user(db, user_id)
        # SQLite does not enforce ON DELETE CASCADE unless asked to
        db.query(UpgradeRequest).filter(UpgradeRequest.user_id == user_id).delete(synchronize_session=False)
        deleted_profiles = db.query(StartupProfile).filter(StartupProfile.user_id == user_id).delete(
            synchronize_session=False
        )
        db.delete(user)
        db.commit()

    logger.info("[ADMIN] %s deleted user id=%s (%d profile(s))", admin.email, user_id, deleted_profiles)
    return {"success": True, "message": "User deleted successfully", "deletedProfiles": deleted_profiles}


@router.get("/stats")
def get_statistics(
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    """
    Get platform statistics
    """
    week_ago = utcnow() - timedelta(days=7)

    with store_operation(db, "admin stats"):
        by_provider = dict(
            db.query(User.auth_provider, func.count(User.id)).group_by(User.auth_provider).all()
        )
        stats = {
            "totalUsers": db.query(User).count(),
            "activeUsers": db.query(User).filter(User.is_active.is_(True)).count(),
            "admins": db.query(User).filter(User.role == "admin").count(),
            "proMembers": db.query(User).filter(User.account_type == "pro").count(),
            "byAuthProvider": {
                "local": by_provider.get("local", 0),
                "google": by_provider.get("google", 0),
                "phone": by_provider.get("phone", 0),
            },
            "newUsersLast7Days": db.query(User).filter(User.created_at >= week_ago).count(),
            "pendingUpgradeRequests": db.query(UpgradeRequest).filter(UpgradeRequest.status == "pending").count(),
        }
        total_profiles = db.query(StartupProfile).count()
        completed_profiles = db.query(StartupProfile).filter(StartupProfile.profile_completion == 100).count()
        stats["startups"] = {
            "total": total_profiles,
            "completed": completed_profiles,
            "incomplete": total_profiles - completed_profiles,
            "byIndustry": dict(
                db.query(StartupProfile.industry, func.count(StartupProfile.id))
                .group_by(StartupProfile.industry).all()
            ),
            "byStage": dict(
                db.query(StartupProfile.stage, func.count(StartupProfile.id))
                .group_by(StartupProfile.stage).all()
            ),
        }

    return {"success": True, "stats": stats}


# ==================== Startup profiles ====================

def _profile_with_user(profile: StartupProfile, user: Optional[User]) -> dict:
    data = profile.to_dict()
    data["userName"] = user.name if user and user.name else "Unknown User"
    data["userPhoto"] = user.photo if user else None
    return data


@router.get("/profiles")
def list_profiles(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    """
    List startup profiles with their owner's name and photo, newest first
    """
    with store_operation(db, "admin profiles"):
        total = db.query(StartupProfile).count()
        rows = (
            db.query(StartupProfile, User)
            .outerjoin(User, User.id == StartupProfile.user_id)
            .order_by(StartupProfile.created_at.desc(), StartupProfile.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )

    profiles = [_profile_with_user(profile, user) for profile, user in rows]
    return {
        "success": True,
        "profiles": profiles,
        "count": len(profiles),
        "total": total,
        "page": page,
        "totalPages": math.ceil(total / limit),
    }


@router.delete("/profiles/cleanup-orphaned")
def cleanup_orphaned_profiles(
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    """
    Remove startup profiles whose user account no longer exists
    """
    removed = delete_orphaned_profiles(db)
    logger.info("[ADMIN] %s removed %d orphaned profile(s)", admin.email, len(removed))

    if not removed:
        return {"success": True, "message": "No orphaned profiles found", "deletedCount": 0}
    return {
        "success": True,
        "message": f"Successfully removed {len(removed)} orphaned profile(s)",
        "deletedCount": len(removed),
        "orphanedProfiles": removed,
    }


@router.get("/profiles/{profile_id}")
def get_profile(
    profile_id: int,
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    with store_operation(db, "admin profile"):
        profile = db.get(StartupProfile, profile_id)
        if profile is None:
            raise NotFound("Startup profile not found")
        user = db.get(User, profile.user_id)

    return {"success": True, "profile": _profile_with_user(profile, user)}
