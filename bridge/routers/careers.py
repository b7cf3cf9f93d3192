"""
Career applications
Public apply form with a CV upload; admins review, download and remove
"""
import logging
import math
import os
import re
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile
from pydantic import BaseModel
from sqlalchemy.orm import Session, undefer

from bridge.core.config import settings
from bridge.core.database import get_db
from bridge.core.errors import NotFound, ValidationError
from bridge.middleware.rate_limit import career_limiter
from bridge.middleware.session import CurrentUser, require_admin
from bridge.models import CareerApplication
from bridge.services.identity import store_operation
from bridge.utils.datetime_utils import utcnow

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/career", tags=["careers"], dependencies=[Depends(career_limiter)])

EMAIL_REGEX = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PINCODE_REGEX = re.compile(r"^\d{6}$")


class RejectApplicationRequest(BaseModel):
    reason: Optional[str] = None


def _get_application(db: Session, application_id: int) -> CareerApplication:
    application = db.get(CareerApplication, application_id)
    if application is None:
        raise NotFound("Application not found")
    return application


@router.post("/apply", status_code=201)
def apply(
    first_name: str = Form("", alias="firstName"),
    last_name: str = Form("", alias="lastName"),
    email: str = Form(""),
    job_role: str = Form("", alias="jobRole"),
    address: str = Form(""),
    pincode: str = Form(""),
    cv: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
):
    """
    Submit a career application; the CV bytes are stored with the row
    """
    fields = [v.strip() for v in (first_name, last_name, email, job_role, address, pincode)]
    if not all(fields):
        raise ValidationError("All fields are required")
    first_name, last_name, email, job_role, address, pincode = fields
    email = email.lower()

    if not EMAIL_REGEX.match(email):
        raise ValidationError("Invalid email format")
    if not PINCODE_REGEX.match(pincode):
        raise ValidationError("Pincode must be 6 digits")
    if cv is None or not cv.filename:
        raise ValidationError("CV file is required")

    extension = os.path.splitext(cv.filename)[1].lower()
    if extension not in settings.cv_allowed_extensions:
        raise ValidationError("Only PDF, DOC, and DOCX files are allowed!")

    # Read one byte past the limit to detect oversize files without loading more
    data = cv.file.read(settings.CV_MAX_SIZE + 1)
    if len(data) > settings.CV_MAX_SIZE:
        raise ValidationError(f"CV file cannot exceed {settings.CV_MAX_SIZE // (1024 * 1024)}MB")
    if not data:
        raise ValidationError("CV file is required")

    application = CareerApplication(
        first_name=first_name,
        last_name=last_name,
        email=email,
        job_role=job_role,
        address=address,
        pincode=pincode,
        cv_data=data,
        cv_content_type=cv.content_type or "application/octet-stream",
        cv_original_name=cv.filename,
        cv_size=len(data),
    )
    with store_operation(db, "career apply"):
        db.add(application)
        db.commit()
        db.refresh(application)

    logger.info("[CAREER] application id=%s for %s (%d bytes)", application.id, job_role, len(data))
    return {
        "success": True,
        "message": "Application submitted successfully!",
        "data": {
            "id": application.id,
            "firstName": application.first_name,
            "lastName": application.last_name,
            "email": application.email,
            "jobRole": application.job_role,
        },
    }


# ==================== Admin ====================

@router.get("/admin/all")
def list_applications(
    page: int = Query(1, ge=1),
    limit: int = Query(100, ge=1, le=500),
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    """
    List applications, newest first, without CV bytes
    """
    with store_operation(db, "career list"):
        query = db.query(CareerApplication)
        if status:
            query = query.filter(CareerApplication.status == status)
        total = query.count()
        applications = (
            query.order_by(CareerApplication.applied_at.desc(), CareerApplication.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )

    return {
        "success": True,
        "applications": [a.to_dict() for a in applications],
        "meta": {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": math.ceil(total / limit),
        },
    }


@router.get("/admin/download/{application_id}")
def download_cv(
    application_id: int,
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    with store_operation(db, "career download"):
        application = (
            db.query(CareerApplication)
            .options(undefer(CareerApplication.cv_data))
            .filter(CareerApplication.id == application_id)
            .first()
        )
    if application is None:
        raise NotFound("Application not found")
    if not application.cv_data:
        raise NotFound("CV not found in DB")

    filename = (application.cv_original_name or "cv").replace('"', "")
    return Response(
        content=application.cv_data,
        media_type=application.cv_content_type or "application/octet-stream",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/admin/{application_id}")
def get_application(
    application_id: int,
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    with store_operation(db, "career get"):
        application = _get_application(db, application_id)
    return {"success": True, "application": application.to_dict()}


@router.post("/admin/{application_id}/approve")
def approve_application(
    application_id: int,
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    """
    Shortlist an application
    """
    with store_operation(db, "career approve"):
        application = _get_application(db, application_id)
        application.status = "shortlisted"
        application.processed_by = admin.id
        application.processed_at = utcnow()
        db.commit()
        db.refresh(application)

    logger.info("[CAREER ADMIN] %s shortlisted application id=%s", admin.email, application_id)
    return {
        "success": True,
        "message": "Application approved (shortlisted)",
        "application": application.to_dict(),
    }


@router.post("/admin/{application_id}/reject")
def reject_application(
    application_id: int,
    body: Optional[RejectApplicationRequest] = None,
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    reason = ((body.reason if body else None) or "").strip()

    with store_operation(db, "career reject"):
        application = _get_application(db, application_id)
        application.status = "rejected"
        if reason:
            application.rejection_reason = reason
        application.processed_by = admin.id
        application.processed_at = utcnow()
        db.commit()
        db.refresh(application)

    logger.info("[CAREER ADMIN] %s rejected application id=%s", admin.email, application_id)
    return {"success": True, "message": "Application rejected", "application": application.to_dict()}


@router.delete("/admin/{application_id}")
def delete_application(
    application_id: int,
    db: Session = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    """
    Delete an application together with its stored CV
    """
    with store_operation(db, "career delete"):
        application = _get_application(db, application_id)
        db.delete(application)
        db.commit()

    logger.info("[CAREER ADMIN] %s deleted application id=%s", admin.email, application_id)
    return {"success": True, "message": "Application deleted successfully", "deletedId": application_id}
