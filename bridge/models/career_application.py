from datetime import datetime
from typing import Optional
from sqlalchemy import Integer, String, DateTime, ForeignKey, LargeBinary, Text
from sqlalchemy.orm import Mapped, mapped_column
from bridge.core.database import Base
from bridge.utils.datetime_utils import utcnow, isoformat

APPLICATION_STATUSES = ("pending", "reviewed", "approved", "shortlisted", "rejected")


class CareerApplication(Base):
    __tablename__ = "career_applications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    first_name: Mapped[str] = mapped_column(String(100))
    last_name: Mapped[str] = mapped_column(String(100))
    email: Mapped[str] = mapped_column(String(255), index=True)
    job_role: Mapped[str] = mapped_column(String(150))
    address: Mapped[str] = mapped_column(String(500))
    pincode: Mapped[str] = mapped_column(String(6))
    # CV bytes are loaded only when accessed
    cv_data: Mapped[Optional[bytes]] = mapped_column(LargeBinary, nullable=True, deferred=True)
    cv_content_type: Mapped[Optional[str]] = mapped_column(String(150), nullable=True)
    cv_original_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    cv_size: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="pending", index=True)
    processed_by: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    processed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    rejection_reason: Mapped[str] = mapped_column(Text, default="")
    applied_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "email": self.email,
            "jobRole": self.job_role,
            "address": self.address,
            "pincode": self.pincode,
            "cv": {
                "contentType": self.cv_content_type,
                "originalName": self.cv_original_name,
                "size": self.cv_size,
            },
            "status": self.status,
            "processedBy": self.processed_by,
            "processedAt": isoformat(self.processed_at),
            "rejectionReason": self.rejection_reason,
            "appliedAt": isoformat(self.applied_at),
        }
