"""
Membership upgrade requests
Users ask for a Pro plan, admins approve or reject
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from bridge.core.database import get_db
from bridge.core.errors import NotFound, ValidationError
from bridge.middleware.session import CurrentUser, require_admin, require_user
from bridge.models import UpgradeRequest, User
from bridge.models.upgrade_request import PAYMENT_METHODS, PLAN_MONTHS, PLAN_TYPES
from bridge.services.identity import store_operation
from bridge.utils.datetime_utils import add_months, utcnow

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/upgrade-requests", tags=["upgrades"])

STATUSES = ("pending", "approved", "rejected")
NOTES_MAX = 500


class SubmitUpgradeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    plan_type: Optional[str] = Field(None, alias="planType")
    payment_method: Optional[str] = Field(None, alias="paymentMethod")
    transaction_id: Optional[str] = Field(None, alias="transactionId")
    notes: Optional[str] = None


class RejectUpgradeRequest(BaseModel):
    reason: Optional[str] = None


def _get_request(db: Session, request_id: int) -> UpgradeRequest:
    upgrade = db.get(UpgradeRequest, request_id)
    if upgrade is None:
        raise NotFound("Upgrade request not found")
    return upgrade


# ==================== User ====================

@router.post("/submit", status_code=201)
def submit(
    body: SubmitUpgradeRequest,
    current: CurrentUser = Depends(require_user),
    db: Session = Depends(get_db),
):
    """
    Submit an upgrade request
    """
    if not body.plan_type:
        raise ValidationError("Plan type is required")
    if body.plan_type not in PLAN_TYPES:
        raise ValidationError("Invalid plan type. Must be monthly, quarterly or yearly")
    payment_method = body.payment_method or "offline"
    if payment_method not in PAYMENT_METHODS:
        raise ValidationError("Invalid payment method")
    notes = (body.notes or "").strip() or None
    if notes and len(notes) > NOTES_MAX:
        raise ValidationError("Notes cannot exceed 500 characters")

    with store_operation(db, "upgrade submit"):
        pending = db.query(UpgradeRequest).filter(
            UpgradeRequest.user_id == current.id,
            UpgradeRequest.status == "pending",
        ).first()
        if pending:
            raise ValidationError("You already have a pending upgrade request")

        user = db.get(User, current.id)
        if user.account_type == "pro":
            raise ValidationError("Your account is already Pro")

        upgrade = UpgradeRequest(
            user_id=user.id,
            user_name=user.name,
            user_email=user.email,
            plan_type=body.plan_type,
            payment_method=payment_method,
            transaction_id=(body.transaction_id or "").strip() or None,
            notes=notes,
            status="pending",
        )
        db.add(upgrade)
        db.commit()
        db.refresh(upgrade)

    logger.info("[UPGRADE] new request from user id=%s (%s)", current.id, upgrade.plan_type)
    return {
        "success": True,
        "message": "Upgrade request submitted successfully. An administrator will review it soon.",
        "request": upgrade.to_dict(),
    }


@router.get("/my-requests")
def my_requests(current: CurrentUser = Depends(require_user), db: Session = Depends(get_db)):
    with store_operation(db, "upgrade list"):
        requests = (
            db.query(UpgradeRequest)
            .filter(UpgradeRequest.user_id == current.id)
            .order_by(UpgradeRequest.created_at.desc(), UpgradeRequest.id.desc())
            .all()
        )
    return {"success": True, "requests": [r.to_dict() for r in requests]}


@router.delete("/my-requests/{request_id}")
def cancel_request(
    request_id: int,
    current: CurrentUser = Depends(require_user),
    db: Session = Depends(get_db),
):
    """
    Cancel own pending request
    """
    with store_operation(db, "upgrade cancel"):
        upgrade = db.query(UpgradeRequest).filter(
            UpgradeRequest.id == request_id,
            UpgradeRequest.user_id == current.id,
            UpgradeRequest.status == "pending",
        ).first()
        if upgrade is None:
            raise NotFound("Pending request not found")
        db.delete(upgrade)
        db.commit()

    logger.info("[UPGRADE] request id=%s cancelled by user id=%s", request_id, current.id)
    return {"success": True, "message": "Upgrade request cancelled successfully"}


# ==================== Admin ====================

@router.get("/admin/all")
def list_all(
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    """
    List upgrade requests, optionally by status (admin only)
    """
    with store_operation(db, "upgrade admin list"):
        query = db.query(UpgradeRequest)
        if status in STATUSES:
            query = query.filter(UpgradeRequest.status == status)
        requests = query.order_by(UpgradeRequest.created_at.desc(), UpgradeRequest.id.desc()).all()

    return {"success": True, "requests": [r.to_dict() for r in requests], "count": len(requests)}


@router.get("/admin/stats")
def request_stats(db: Session = Depends(get_db), admin: CurrentUser = Depends(require_admin)):
    with store_operation(db, "upgrade stats"):
        stats = {
            s: db.query(UpgradeRequest).filter(UpgradeRequest.status == s).count()
            for s in STATUSES
        }
        stats["total"] = db.query(UpgradeRequest).count()
    return {"success": True, "stats": stats}


@router.post("/admin/{request_id}/approve")
def approve(
    request_id: int,
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    """
    Approve a request and make the user Pro
    """
    with store_operation(db, "upgrade approve"):
        upgrade = _get_request(db, request_id)
        if upgrade.status != "pending":
            raise ValidationError(f"Request has already been {upgrade.status}")

        user = db.get(User, upgrade.user_id)
        if user is None:
            raise NotFound("User not found")

        now = utcnow()
        user.account_type = "pro"
        user.plan_type = upgrade.plan_type
        user.pro_expires_at = add_months(now, PLAN_MONTHS.get(upgrade.plan_type, 1))

        upgrade.status = "approved"
        upgrade.approved_by = admin.id
        upgrade.approved_at = now

        # User and request change together
        db.commit()
        db.refresh(user)

    logger.info("[ADMIN] %s approved upgrade id=%s for user id=%s", admin.email, request_id, user.id)
    return {
        "success": True,
        "message": "Upgrade request approved successfully",
        "user": user.to_public_dict(),
    }


@router.post("/admin/{request_id}/reject")
def reject(
    request_id: int,
    body: Optional[RejectUpgradeRequest] = None,
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    with store_operation(db, "upgrade reject"):
        upgrade = _get_request(db, request_id)
        if upgrade.status != "pending":
            raise ValidationError(f"Request has already been {upgrade.status}")

        upgrade.status = "rejected"
        upgrade.rejected_by = admin.id
        upgrade.rejected_at = utcnow()
        upgrade.rejection_reason = ((body.reason if body else None) or "").strip() or "No reason provided"
        db.commit()

    logger.info("[ADMIN] %s rejected upgrade id=%s", admin.email, request_id)
    return {"success": True, "message": "Upgrade request rejected successfully"}


@router.delete("/admin/{request_id}")
def delete_request(
    request_id: int,
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    with store_operation(db, "upgrade delete"):
        upgrade = _get_request(db, request_id)
        db.delete(upgrade)
        db.commit()

    logger.info("[ADMIN] %s deleted upgrade id=%s", admin.email, request_id)
    return {"success": True, "message": "Upgrade request deleted successfully"}
