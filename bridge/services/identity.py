"""
Identity resolution
Password, Google and phone sign-ins all end on a single User row.
"""
import logging
import re
from contextlib import contextmanager
from dataclasses import dataclass
from typing import List, Optional, Tuple

from sqlalchemy import or_, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bridge.core.database import STORE_UNAVAILABLE_ERRORS
from bridge.core.errors import (
    AccountDisabled,
    DuplicateIdentity,
    IdentityConflict,
    InvalidCredential,
    NotFound,
    ServiceUnavailable,
    ValidationError,
)
from bridge.core.security import dummy_verify, hash_password, verify_password
from bridge.models import User
from bridge.utils.datetime_utils import utcnow

logger = logging.getLogger(__name__)

EMAIL_REGEX = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
NAME_MIN, NAME_MAX = 2, 50
PASSWORD_MIN, PASSWORD_MAX = 6, 100
BIO_MAX = 500


@dataclass
class OAuthProfile:
    """What a provider tells us about the signed-in account"""
    subject_id: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    photo: Optional[str] = None


def normalize_email(email: Optional[str]) -> Optional[str]:
    if not email:
        return None
    return email.strip().lower() or None


def default_phone_name(phone: str) -> str:
    return f"User_{phone[-4:]}"


def find_user_by_email(db: Session, email: Optional[str]) -> Optional[User]:
    return db.query(User).filter(User.email == email).first()


def find_user_by_google_id(db: Session, subject_id: str) -> Optional[User]:
    return db.query(User).filter(User.google_id == subject_id).first()


@contextmanager
def store_operation(db: Session, action: str):
    """Translate "database unreachable" into ServiceUnavailable"""
    try:
        yield
    except STORE_UNAVAILABLE_ERRORS as e:
        db.rollback()
        logger.error("[%s] database unavailable: %s", action, e)
        raise ServiceUnavailable() from e


def validate_name(name: Optional[str], required: bool = True) -> List[str]:
    name = (name or "").strip()
    if not name:
        return ["Name is required and must be at least 2 characters"] if required else []
    if len(name) < NAME_MIN:
        return ["Name must be at least 2 characters"]
    if len(name) > NAME_MAX:
        return ["Name cannot exceed 50 characters"]
    return []


def validate_registration(name: str, email: str, password: str, confirm_password: Optional[str] = None) -> List[str]:
    errors = validate_name(name)

    if not email or not EMAIL_REGEX.match(email.strip()):
        errors.append("Valid email is required")

    if not password or len(password) < PASSWORD_MIN:
        errors.append("Password must be at least 6 characters long")
    elif len(password) > PASSWORD_MAX:
        errors.append("Password cannot exceed 100 characters")

    if confirm_password is not None and confirm_password != password:
        errors.append("Passwords do not match")

    return errors


def _touch(db: Session, user: User, **changes) -> User:
    """Update-by-filter on one user: last_login plus any backfilled fields"""
    changes["last_login"] = utcnow()
    db.execute(update(User).where(User.id == user.id).values(**changes))
    db.commit()
    db.refresh(user)
    return user


# ==================== Password ====================

def register_user(db: Session, name: str, email: str, password: str,
                  confirm_password: Optional[str] = None) -> User:
    """
    Create a password account.

    Raises ValidationError (all problems listed in `messages`) or
    DuplicateIdentity when the normalized email is already owned.
    """
    errors = validate_registration(name, email, password, confirm_password)
    if errors:
        raise ValidationError("Validation failed", messages=errors)

    normalized_email = normalize_email(email)

    with store_operation(db, "register"):
        existing = find_user_by_email(db, normalized_email)
        if existing:
            hint = {}
            if not existing.password_hash and existing.auth_provider == "google":
                hint = {"authProvider": "google",
                        "hint": "This email is already registered using Google Sign-In. Please use Google to login."}
            raise DuplicateIdentity("Email already registered", **hint)

        user = User(
            name=name.strip(),
            email=normalized_email,
            password_hash=hash_password(password),
            auth_provider="local",
            is_active=True,
            email_verified=False,
        )
        db.add(user)
        try:
            db.commit()
        except IntegrityError as e:
            # Lost a race with a concurrent registration
            db.rollback()
            logger.info("[register] duplicate email on insert: %s", normalized_email)
            raise DuplicateIdentity("Email already registered") from e
        db.refresh(user)

    logger.info("[register] new user %s (id=%s)", user.email, user.id)
    return user


def authenticate_user(db: Session, email: str, password: str) -> User:
    """
    Check email/password and record the login.

    Unknown email, password-less account and wrong password all raise the same
    InvalidCredential.
    """
    if not email or not password:
        raise ValidationError("Email and password are required")

    normalized_email = normalize_email(email)

    with store_operation(db, "login"):
        user = find_user_by_email(db, normalized_email)

        if user is None or not user.password_hash:
            dummy_verify()
            raise InvalidCredential()

        if not verify_password(password, user.password_hash):
            raise InvalidCredential()

        if not user.is_active:
            raise AccountDisabled()

        _touch(db, user)

    logger.info("[login] user %s (id=%s)", user.email, user.id)
    return user


# ==================== Google ====================

def _conflict_for(db: Session, email: Optional[str], subject_id: str) -> IdentityConflict:
    """Work out which unique identifier a failed insert collided on"""
    if db.query(User.id).filter(User.google_id == subject_id).first():
        return IdentityConflict("Google account already registered", field="provider_id")
    if email and db.query(User.id).filter(User.email == email).first():
        return IdentityConflict("Email already registered", field="email")
    return IdentityConflict("An account with this email or Google ID already exists", field="email")


def resolve_oauth_identity(db: Session, profile: OAuthProfile) -> User:
    """
    Find, link or create the user for a Google profile.

    1. google_id known -> login, refresh display name/photo
    2. email owned by an account -> link google_id to it
    3. otherwise -> new account
    """
    if not profile.subject_id:
        raise ValidationError("Google account id is missing")

    email = normalize_email(profile.email)
    if email and not EMAIL_REGEX.match(email):
        email = None

    with store_operation(db, "oauth"):
        user = find_user_by_google_id(db, profile.subject_id)
        if user:
            if not user.is_active:
                raise AccountDisabled()
            changes = {}
            if profile.display_name and profile.display_name != user.display_name:
                changes["display_name"] = profile.display_name
            if profile.photo and profile.photo != user.photo:
                changes["photo"] = profile.photo
            if not user.email and email:
                if find_user_by_email(db, email) is None:
                    changes["email"] = email
            if user.email or "email" in changes:
                changes["email_verified"] = True
            if not user.name and profile.display_name:
                changes["name"] = profile.display_name[:NAME_MAX]
            try:
                _touch(db, user, **changes)
            except IntegrityError:
                if "email" not in changes:
                    raise
                # Email was claimed by another account after the check
                db.rollback()
                logger.info("[oauth] email backfill for user id=%s lost a race, skipped", user.id)
                changes.pop("email")
                if not user.email:
                    changes.pop("email_verified", None)
                _touch(db, user, **changes)
            logger.info("[oauth] login for user id=%s", user.id)
            return user

        if email:
            user = find_user_by_email(db, email)
            if user:
                if not user.is_active:
                    raise AccountDisabled()
                if user.google_id and user.google_id != profile.subject_id:
                    raise IdentityConflict(
                        "This email is already linked to a different Google account", field="email"
                    )
                changes = {"google_id": profile.subject_id, "email_verified": True}
                if profile.photo and not user.photo:
                    changes["photo"] = profile.photo
                if profile.display_name and not user.display_name:
                    changes["display_name"] = profile.display_name
                try:
                    _touch(db, user, **changes)
                except IntegrityError as e:
                    db.rollback()
                    raise IdentityConflict("Google account already registered", field="provider_id") from e
                logger.info("[oauth] linked Google account to user id=%s", user.id)
                return user

        fallback_name = email.split("@")[0] if email else f"User_{profile.subject_id[-4:]}"
        user = User(
            name=(profile.display_name or fallback_name)[:NAME_MAX],
            email=email,
            google_id=profile.subject_id,
            display_name=profile.display_name,
            photo=profile.photo,
            auth_provider="google",
            is_active=True,
            email_verified=bool(email),
            last_login=utcnow(),
        )
        db.add(user)
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            conflict = _conflict_for(db, email, profile.subject_id)
            logger.warning("[oauth] create failed, conflict on %s", conflict.field)
            raise conflict from e
        db.refresh(user)

    logger.info("[oauth] new user id=%s", user.id)
    return user


# ==================== Phone ====================

def find_user_by_phone(db: Session, phone: str) -> Optional[User]:
    with store_operation(db, "phone lookup"):
        return db.query(User).filter(User.phone == phone).first()


def resolve_phone_identity(db: Session, phone: str, name: Optional[str] = None) -> Tuple[User, bool]:
    """
    Find or create the user for an OTP-verified phone number.

    Returns: (user, is_new_user)
    """
    name = (name or "").strip() or None

    with store_operation(db, "phone"):
        user = db.query(User).filter(User.phone == phone).first()
        if user:
            if not user.is_active:
                raise AccountDisabled()
            changes = {"phone_verified": True}
            if not user.name:
                changes["name"] = name or default_phone_name(phone)
            _touch(db, user, **changes)
            logger.info("[phone] login for user id=%s", user.id)
            return user, False

        user = User(
            phone=phone,
            name=name or default_phone_name(phone),
            phone_verified=True,
            auth_provider="phone",
            is_active=True,
            last_login=utcnow(),
        )
        db.add(user)
        try:
            db.commit()
        except IntegrityError as e:
            # A concurrent verification created it first; log in to that row
            db.rollback()
            user = db.query(User).filter(User.phone == phone).first()
            if user is None:
                raise DuplicateIdentity("An account with this phone number already exists") from e
            _touch(db, user, phone_verified=True)
            return user, False
        db.refresh(user)

    logger.info("[phone] new user id=%s", user.id)
    return user, True


# ==================== Profile ====================

def update_profile(db: Session, user_id: int, name: Optional[str] = None, display_name: Optional[str] = None,
                   bio: Optional[str] = None, photo: Optional[str] = None) -> User:
    """Apply profile edits; None means "leave unchanged"."""
    errors = []
    changes = {}

    if name is not None:
        errors += validate_name(name)
        changes["name"] = name.strip()
    if display_name is not None:
        if len(display_name.strip()) > NAME_MAX:
            errors.append("Display name cannot exceed 50 characters")
        changes["display_name"] = display_name.strip() or None
    if bio is not None:
        if len(bio.strip()) > BIO_MAX:
            errors.append("Bio cannot exceed 500 characters")
        changes["bio"] = bio.strip() or None
    if photo is not None:
        changes["photo"] = photo.strip() or None

    if errors:
        raise ValidationError("Validation failed", messages=errors)

    with store_operation(db, "profile"):
        user = db.get(User, user_id)
        if user is None:
            raise NotFound("User not found")
        if changes:
            db.execute(update(User).where(User.id == user_id).values(**changes))
            db.commit()
            db.refresh(user)
    return user


def search_users(db: Session, term: Optional[str]):
    """Query of users matching a case-insensitive name/email/phone fragment"""
    query = db.query(User)
    if term:
        pattern = f"%{term.strip().lower()}%"
        query = query.filter(or_(
            User.name.ilike(pattern),
            User.email.ilike(pattern),
            User.phone.ilike(pattern),
        ))
    return query


# ==================== Bootstrap ====================

def ensure_admin_user(db: Session, email: str, password: str, name: str = "Administrator") -> User:
    """
    Create the admin account, or promote and re-activate an existing user
    with that email. The password is only set when creating.
    """
    normalized_email = normalize_email(email)
    if not normalized_email or not EMAIL_REGEX.match(normalized_email):
        raise ValidationError("Valid admin email is required")

    with store_operation(db, "bootstrap admin"):
        user = find_user_by_email(db, normalized_email)
        if user:
            if user.role != "admin" or not user.is_active:
                user.role = "admin"
                user.is_active = True
                db.commit()
                db.refresh(user)
                logger.info("[bootstrap] promoted %s to admin", normalized_email)
            return user

        if not password or len(password) < PASSWORD_MIN:
            raise ValidationError("Admin password must be at least 6 characters long")

        user = User(
            name=(name or "Administrator").strip()[:NAME_MAX],
            email=normalized_email,
            password_hash=hash_password(password),
            role="admin",
            auth_provider="local",
            is_active=True,
            email_verified=True,
        )
        db.add(user)
        try:
            db.commit()
        except IntegrityError:
            # Another worker created it first
            db.rollback()
            return db.query(User).filter(User.email == normalized_email).one()
        db.refresh(user)

    logger.info("[bootstrap] created admin %s", normalized_email)
    return user
