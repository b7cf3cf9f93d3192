from datetime import datetime
from typing import Optional
from sqlalchemy import Integer, String, DateTime, ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column
from bridge.core.database import Base
from bridge.utils.datetime_utils import utcnow, isoformat

PLAN_TYPES = ("monthly", "quarterly", "yearly")
PLAN_MONTHS = {"monthly": 1, "quarterly": 3, "yearly": 12}
PAYMENT_METHODS = ("upi", "bank_transfer", "cash", "offline", "other")


class UpgradeRequest(Base):
    __tablename__ = "upgrade_requests"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    user_name: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    user_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    plan_type: Mapped[str] = mapped_column(String(20), default="monthly")  # 'monthly' | 'quarterly' | 'yearly'
    payment_method: Mapped[str] = mapped_column(String(20), default="offline")
    transaction_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="pending", index=True)  # 'pending' | 'approved' | 'rejected'
    approved_by: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    rejected_by: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    rejected_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    rejection_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "userName": self.user_name,
            "userEmail": self.user_email,
            "planType": self.plan_type,
            "paymentMethod": self.payment_method,
            "transactionId": self.transaction_id,
            "notes": self.notes,
            "status": self.status,
            "approvedBy": self.approved_by,
            "approvedAt": isoformat(self.approved_at),
            "rejectedBy": self.rejected_by,
            "rejectedAt": isoformat(self.rejected_at),
            "rejectionReason": self.rejection_reason,
            "createdAt": isoformat(self.created_at),
        }
