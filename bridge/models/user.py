"""
User Model
"""
from datetime import datetime
from typing import Optional
from sqlalchemy import Integer, String, Boolean, DateTime, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column
from bridge.core.database import Base
from bridge.utils.datetime_utils import utcnow, isoformat


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        # Every account must be reachable by at least one sign-in channel
        CheckConstraint(
            "email IS NOT NULL OR phone IS NOT NULL OR google_id IS NOT NULL",
            name="ck_users_reachable",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), unique=True, nullable=True, index=True)
    password_hash: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(20), unique=True, nullable=True, index=True)
    google_id: Mapped[Optional[str]] = mapped_column(String(255), unique=True, nullable=True, index=True)
    display_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    photo: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    bio: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    email_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    phone_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    role: Mapped[str] = mapped_column(String(20), default="user")  # 'admin' | 'user'
    auth_provider: Mapped[str] = mapped_column(String(20), default="local")  # 'local' | 'google' | 'phone'
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    account_type: Mapped[str] = mapped_column(String(20), default="free")  # 'free' | 'pro'
    plan_type: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    pro_expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    last_login: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def to_public_dict(self) -> dict:
        """Fields safe to return to clients (never the password hash)"""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phoneNumber": self.phone,
            "displayName": self.display_name,
            "photo": self.photo,
            "bio": self.bio,
            "role": self.role,
            "authProvider": self.auth_provider,
            "accountType": self.account_type,
            "planType": self.plan_type,
            "proExpiresAt": isoformat(self.pro_expires_at),
            "isPhoneVerified": bool(self.phone_verified),
            "isEmailVerified": bool(self.email_verified),
            "isActive": bool(self.is_active),
            "createdAt": isoformat(self.created_at),
            "lastLogin": isoformat(self.last_login),
        }

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, phone={self.phone}, role={self.role})>"
