from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import ORJSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy import func
from datetime import datetime, timedelta
from typing import List, Optional
import logging
import secrets

from .. import crud, models, schemas
from ..core.config import settings
from ..core.session import SessionContext
from ..services import request_workflow
from ..services.request_queues import first_event_date
from ..utils.auth import normalize_email
from ..utils.errors import NotFoundError, RemoteFailure, ValidationError
from .dependencies import get_db, require_admin

router = APIRouter(prefix="/admin", tags=["admin"], default_response_class=ORJSONResponse)

logger = logging.getLogger(__name__)


def _commit(db: Session, what: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Could not save %s: %s", what, exc)
        raise RemoteFailure(f"Could not save {what}; please retry") from exc


def _get_vendor_or_404(db: Session, vendor_id: int) -> models.Vendor:
    vendor = crud.crud_vendor.get_vendor(db, vendor_id)
    if vendor is None:
        raise NotFoundError("Vendor not found", {"vendor_id": "Not found"})
    return vendor


def _get_user_or_404(db: Session, user_id: int) -> models.User:
    user = crud.user.get_user(db, user_id)
    if user is None:
        raise NotFoundError("User not found", {"user_id": "Not found"})
    return user


# ─── Dashboard ───────────────────────────────────────────────────────────────
@router.get("/analytics", response_model=schemas.AdminAnalytics)
def read_analytics(
    db: Session = Depends(get_db),
    _: SessionContext = Depends(require_admin),
):
    by_status = crud.crud_booking_request.count_by_status(db)
    vendor_counts = dict(
        db.query(models.Vendor.status, func.count(models.Vendor.id))
        .group_by(models.Vendor.status)
        .all()
    )
    return {
        "total_users": db.query(func.count(models.User.id)).scalar() or 0,
        "total_vendors": sum(vendor_counts.values()),
        "verified_vendors": vendor_counts.get(models.VendorStatus.VERIFIED, 0),
        "pending_vendors": vendor_counts.get(models.VendorStatus.PENDING, 0),
        "confirmed_requests": by_status.get(models.RequestStatus.CONFIRMED.value, 0),
        "requests_by_status": by_status,
    }


# ─── Users ───────────────────────────────────────────────────────────────────
@router.get("/users", response_model=List[schemas.UserResponse])
def list_users(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    _: SessionContext = Depends(require_admin),
):
    return crud.user.list_users(db, skip=skip, limit=limit)


def _set_user_active(db: Session, ctx: SessionContext, user_id: int, active: bool) -> models.User:
    user = _get_user_or_404(db, user_id)
    if user.id == ctx.user_id and not active:
        raise ValidationError("You cannot suspend yourself", {"user_id": "Self"})
    crud.user.set_active(db, user, active)
    _commit(db, "user")
    db.refresh(user)
    logger.info("Admin %s set user %s active=%s", ctx.user_id, user_id, active)
    return user


@router.post("/users/{user_id}/suspend", response_model=schemas.UserResponse)
def suspend_user(
    user_id: int,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(require_admin),
):
    return _set_user_active(db, ctx, user_id, False)


@router.post("/users/{user_id}/activate", response_model=schemas.UserResponse)
def activate_user(
    user_id: int,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(require_admin),
):
    return _set_user_active(db, ctx, user_id, True)


# ─── Vendors ─────────────────────────────────────────────────────────────────
@router.get("/vendors", response_model=List[schemas.VendorResponse])
def list_vendors(
    status_filter: Optional[models.VendorStatus] = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    _: SessionContext = Depends(require_admin),
):
    query = db.query(models.Vendor)
    if status_filter is not None:
        query = query.filter(models.Vendor.status == status_filter)
    return query.order_by(models.Vendor.created_at.desc(), models.Vendor.id.desc()).all()


@router.post("/vendors/{vendor_id}/verify", response_model=schemas.VendorResponse)
def verify_vendor(
    vendor_id: int,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(require_admin),
):
    vendor = _get_vendor_or_404(db, vendor_id)
    crud.crud_vendor.set_vendor_status(db, vendor, models.VendorStatus.VERIFIED)
    _commit(db, "vendor")
    db.refresh(vendor)
    logger.info("Admin %s verified vendor %s", ctx.user_id, vendor_id)
    return vendor


@router.post("/vendors/{vendor_id}/reject", response_model=schemas.VendorResponse)
def reject_vendor(
    vendor_id: int,
    payload: schemas.RejectPayload,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(require_admin),
):
    vendor = _get_vendor_or_404(db, vendor_id)
    crud.crud_vendor.set_vendor_status(db, vendor, models.VendorStatus.REJECTED, payload.reason)
    _commit(db, "vendor")
    db.refresh(vendor)
    logger.info("Admin %s rejected vendor %s", ctx.user_id, vendor_id)
    return vendor


# ─── Booking requests ────────────────────────────────────────────────────────
@router.get("/booking-requests", response_model=List[schemas.AdminRequestRow])
def list_booking_requests(
    skip: int = Query(0, ge=0),
    limit: int = Query(200, ge=1, le=1000),
    db: Session = Depends(get_db),
    _: SessionContext = Depends(require_admin),
):
    rows = []
    for r in crud.crud_booking_request.list_all_booking_requests(db, skip=skip, limit=limit):
        dates = [d.event_date for d in r.dates]
        rows.append(
            {
                "id": r.id,
                "vendor_id": r.vendor_id,
                "vendor_name": r.vendor.business_name if r.vendor else None,
                "user_id": r.user_id,
                "requester_name": (r.user.full_name or r.user.email) if r.user else None,
                "status": r.status,
                "first_date": first_event_date(dates),
                "date_count": len(dates),
                "created_at": r.created_at,
            }
        )
    return rows


@router.post("/booking-requests/expire", response_model=schemas.ExpireResult)
def expire_booking_requests(
    older_than_days: Optional[int] = Query(default=None, ge=0),
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(require_admin),
):
    """Expire pending and countered requests nobody acted on."""
    return {"expired": request_workflow.expire_stale_requests(db, ctx, older_than_days)}


# ─── Onboarding ──────────────────────────────────────────────────────────────
@router.get(
    "/onboarding/applications",
    response_model=List[schemas.OnboardingApplicationResponse],
)
def list_onboarding_applications(
    status_filter: Optional[models.ApplicationStatus] = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    _: SessionContext = Depends(require_admin),
):
    return crud.crud_onboarding.list_applications(db, status_filter)


def _get_pending_application(db: Session, application_id: int) -> models.VendorOnboardingApplication:
    application = crud.crud_onboarding.get_application(db, application_id)
    if application is None:
        raise NotFoundError("Application not found", {"application_id": "Not found"})
    if application.status != models.ApplicationStatus.PENDING:
        raise ValidationError(
            f"Application is already {application.status.value}",
            {"status": application.status.value},
        )
    return application


@router.post(
    "/onboarding/applications/{application_id}/approve",
    response_model=schemas.OnboardingApplicationResponse,
)
def approve_onboarding_application(
    application_id: int,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(require_admin),
):
    """Create a verified vendor listing from the application."""
    application = _get_pending_application(db, application_id)
    if crud.crud_vendor.get_vendor_by_user(db, application.user_id) is not None:
        raise ValidationError("Applicant already has a vendor listing", {"user_id": "Exists"})
    vendor = crud.crud_vendor.create_vendor(
        db,
        schemas.VendorCreate(
            business_name=application.business_name,
            category=application.category,
            location=application.location,
            description=application.description,
            contact_phone=application.contact_phone,
        ),
        application.user_id,
    )
    crud.crud_vendor.set_vendor_status(db, vendor, models.VendorStatus.VERIFIED)
    applicant = _get_user_or_404(db, application.user_id)
    if applicant.role == models.UserRole.VIEWER:
        applicant.role = models.UserRole.VENDOR
    application.status = models.ApplicationStatus.APPROVED
    application.vendor_id = vendor.id
    _commit(db, "application")
    db.refresh(application)
    logger.info("Admin %s approved application %s as vendor %s", ctx.user_id, application_id, vendor.id)
    return application


@router.post(
    "/onboarding/applications/{application_id}/reject",
    response_model=schemas.OnboardingApplicationResponse,
)
def reject_onboarding_application(
    application_id: int,
    payload: schemas.RejectPayload,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(require_admin),
):
    application = _get_pending_application(db, application_id)
    application.status = models.ApplicationStatus.REJECTED
    application.rejection_reason = payload.reason
    _commit(db, "application")
    db.refresh(application)
    logger.info("Admin %s rejected application %s", ctx.user_id, application_id)
    return application


# ─── Invitations ─────────────────────────────────────────────────────────────
@router.post(
    "/invitations",
    response_model=schemas.InvitationResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_vendor_invitation(
    invitation_in: schemas.InvitationCreate,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(require_admin),
):
    invitation = crud.crud_onboarding.create_invitation(
        db,
        email=normalize_email(invitation_in.email),
        token=secrets.token_urlsafe(32),
        expires_at=datetime.utcnow() + timedelta(hours=settings.VENDOR_INVITATION_TTL_HOURS),
        invited_by=ctx.user_id,
    )
    _commit(db, "invitation")
    db.refresh(invitation)
    logger.info("Admin %s invited %s to become a vendor", ctx.user_id, invitation.email)
    return invitation
