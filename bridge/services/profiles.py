"""
Founder profiles
Create-or-update per user, completion percentage, orphan cleanup
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bridge.core.errors import NotFound, ValidationError
from bridge.models import StartupProfile, User
from bridge.models.profile import COMPLETION_FIELDS, INDUSTRIES, REVENUE_BANDS, STAGES, TEAM_SIZES
from bridge.services.identity import store_operation
from bridge.utils.datetime_utils import utcnow

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("founder_name", "startup_name", "industry", "stage", "location", "description")
OPTIONAL_FIELDS = (
    "website",
    "founded_year",
    "team_size",
    "monthly_revenue",
    "is_incorporated",
    "competitive_advantage",
    "customer_base",
)
FOUNDED_YEAR_MIN = 2000


def _is_filled(value: Any) -> bool:
    return value is not None and str(value).strip() != ""


def compute_profile_completion(values: Dict[str, Any]) -> int:
    """Percentage of COMPLETION_FIELDS that hold a non-blank value"""
    filled = sum(1 for field in COMPLETION_FIELDS if _is_filled(values.get(field)))
    return round(filled * 100 / len(COMPLETION_FIELDS))


def validate_profile(data: Dict[str, Any]) -> List[str]:
    errors = []

    if any(not _is_filled(data.get(field)) for field in REQUIRED_FIELDS):
        return ["Please fill all required fields"]

    if data["industry"] not in INDUSTRIES:
        errors.append(f"Industry must be one of: {', '.join(INDUSTRIES)}")
    if data["stage"] not in STAGES:
        errors.append(f"Stage must be one of: {', '.join(STAGES)}")

    year = data.get("founded_year")
    if year is not None and not FOUNDED_YEAR_MIN <= year <= utcnow().year:
        errors.append(f"Founded year must be between {FOUNDED_YEAR_MIN} and {utcnow().year}")
    if _is_filled(data.get("team_size")) and data["team_size"] not in TEAM_SIZES:
        errors.append(f"Team size must be one of: {', '.join(TEAM_SIZES)}")
    if _is_filled(data.get("monthly_revenue")) and data["monthly_revenue"] not in REVENUE_BANDS:
        errors.append(f"Monthly revenue must be one of: {', '.join(REVENUE_BANDS)}")

    return errors


def get_profile_for_user(db: Session, user_id: int) -> StartupProfile:
    with store_operation(db, "profile get"):
        profile = db.query(StartupProfile).filter(StartupProfile.user_id == user_id).first()
    if profile is None:
        raise NotFound("Profile not found")
    return profile


def save_profile(db: Session, user_id: int, user_email: Optional[str],
                 data: Dict[str, Any]) -> Tuple[StartupProfile, bool]:
    """
    Create or update the profile of `user_id`.

    Required fields are replaced on every save; optional fields only when sent.
    The completion percentage is recomputed before the row is written.

    Returns: (profile, created)
    """
    data = {k: (v.strip() if isinstance(v, str) else v) for k, v in data.items()}
    errors = validate_profile(data)
    if errors:
        raise ValidationError(errors[0], messages=errors)

    with store_operation(db, "profile save"):
        profile = db.query(StartupProfile).filter(StartupProfile.user_id == user_id).first()
        created = profile is None
        if created:
            profile = StartupProfile(user_id=user_id, website="", is_incorporated="",
                                     competitive_advantage="", customer_base="")
            db.add(profile)

        if user_email:
            profile.user_email = user_email
        for field in REQUIRED_FIELDS:
            setattr(profile, field, data[field])
        for field in OPTIONAL_FIELDS:
            if data.get(field) is not None:
                setattr(profile, field, data[field])

        profile.profile_completion = compute_profile_completion(
            {field: getattr(profile, field) for field in COMPLETION_FIELDS}
        )

        try:
            db.commit()
        except IntegrityError as e:
            # Two first saves for the same user raced
            db.rollback()
            raise ValidationError("Profile already exists, please retry") from e
        db.refresh(profile)

    logger.info("[profile] %s profile id=%s for user id=%s (%s%%)",
                "created" if created else "updated", profile.id, user_id, profile.profile_completion)
    return profile, created


def delete_profile_for_user(db: Session, user_id: int) -> None:
    with store_operation(db, "profile delete"):
        deleted = db.query(StartupProfile).filter(StartupProfile.user_id == user_id).delete(
            synchronize_session=False
        )
        db.commit()
    if not deleted:
        raise NotFound("Profile not found")
    logger.info("[profile] deleted profile of user id=%s", user_id)


def delete_orphaned_profiles(db: Session) -> List[Dict[str, Any]]:
    """Remove profiles whose user no longer exists; returns a summary of each removed row"""
    with store_operation(db, "profile cleanup"):
        orphans = (
            db.query(StartupProfile)
            .outerjoin(User, User.id == StartupProfile.user_id)
            .filter(User.id.is_(None))
            .all()
        )
        removed = [
            {"id": p.id, "startupName": p.startup_name, "founderName": p.founder_name, "userId": p.user_id}
            for p in orphans
        ]
        for profile in orphans:
            db.delete(profile)
        db.commit()

    logger.info("[profile] removed %d orphaned profile(s)", len(removed))
    return removed
