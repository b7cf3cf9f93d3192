"""
Founder profile endpoints
A user manages their own startup profile; admins can read or remove any
"""
from typing import Optional

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from bridge.core.database import get_db
from bridge.core.errors import Forbidden
from bridge.middleware.rate_limit import profile_limiter
from bridge.middleware.session import CurrentUser, require_user
from bridge.services.profiles import delete_profile_for_user, get_profile_for_user, save_profile

router = APIRouter(prefix="/api/profile", tags=["profiles"], dependencies=[Depends(profile_limiter)])


class SaveProfileRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    founder_name: Optional[str] = Field(None, alias="founderName")
    startup_name: Optional[str] = Field(None, alias="startupName")
    industry: Optional[str] = None
    stage: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    website: Optional[str] = None
    founded_year: Optional[int] = Field(None, alias="foundedYear")
    team_size: Optional[str] = Field(None, alias="teamSize")
    monthly_revenue: Optional[str] = Field(None, alias="monthlyRevenue")
    is_incorporated: Optional[str] = Field(None, alias="isIncorporated")
    competitive_advantage: Optional[str] = Field(None, alias="competitiveAdvantage")
    customer_base: Optional[str] = Field(None, alias="customerBase")


def _check_owner(current: CurrentUser, user_id: int):
    if current.id != user_id and not current.is_admin:
        raise Forbidden("You can only access your own profile")


@router.post("")
def save(
    body: SaveProfileRequest,
    response: Response,
    current: CurrentUser = Depends(require_user),
    db: Session = Depends(get_db),
):
    """
    Create or update the signed-in user's startup profile
    """
    profile, created = save_profile(db, current.id, current.email, body.model_dump())
    if created:
        response.status_code = 201
    return {
        "success": True,
        "message": "Profile created successfully" if created else "Profile updated successfully",
        "profile": profile.to_dict(),
    }


@router.get("/{user_id}")
def get_profile(
    user_id: int,
    current: CurrentUser = Depends(require_user),
    db: Session = Depends(get_db),
):
    _check_owner(current, user_id)
    return {"success": True, "profile": get_profile_for_user(db, user_id).to_dict()}


@router.delete("/{user_id}")
def delete_profile(
    user_id: int,
    current: CurrentUser = Depends(require_user),
    db: Session = Depends(get_db),
):
    _check_owner(current, user_id)
    delete_profile_for_user(db, user_id)
    return {"success": True, "message": "Profile deleted successfully"}
