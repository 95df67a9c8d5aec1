from fastapi import APIRouter, Depends, status
from fastapi.responses import ORJSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from datetime import datetime
from typing import List, Optional
import logging

from .. import crud, models, schemas
from ..core.session import SessionContext
from ..utils.errors import AuthorizationFailure, NotFoundError, RemoteFailure, ValidationError
from .dependencies import get_db, get_session_context

router = APIRouter(tags=["Vendor onboarding"], default_response_class=ORJSONResponse)

logger = logging.getLogger(__name__)


def _invitation_problem(invitation: Optional[models.VendorInvitation], now: datetime) -> Optional[str]:
    if invitation is None:
        return "Invitation not found"
    if invitation.accepted_at is not None:
        return "Invitation already used"
    if invitation.expires_at < now:
        return "Invitation expired"
    return None


@router.post(
    "/applications",
    response_model=schemas.OnboardingApplicationResponse,
    status_code=status.HTTP_201_CREATED,
)
def submit_application(
    application_in: schemas.OnboardingApplicationCreate,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
):
    if ctx.vendor_id is not None:
        raise ValidationError("You already have a vendor listing", {"vendor": "Exists"})
    pending = [
        a
        for a in crud.crud_onboarding.list_applications(db, models.ApplicationStatus.PENDING)
        if a.user_id == ctx.user_id
    ]
    if pending:
        raise ValidationError("You already have an application under review", {"application": "Pending"})
    try:
        application = crud.crud_onboarding.create_application(db, ctx.user_id, application_in)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Could not save onboarding application: %s", exc)
        raise RemoteFailure("Could not submit application; please retry") from exc
    db.refresh(application)
    logger.info("User %s applied to become a vendor (%s)", ctx.user_id, application.id)
    return application


@router.get("/applications/me", response_model=List[schemas.OnboardingApplicationResponse])
def read_my_applications(
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
):
    return [a for a in crud.crud_onboarding.list_applications(db) if a.user_id == ctx.user_id]


@router.get("/invitations/{token}", response_model=schemas.InvitationStatus)
def validate_invitation(token: str, db: Session = Depends(get_db)):
    invitation = crud.crud_onboarding.get_invitation_by_token(db, token)
    problem = _invitation_problem(invitation, datetime.utcnow())
    return {
        "email": invitation.email if invitation else "",
        "valid": problem is None,
        "reason": problem,
    }


@router.post("/invitations/{token}/accept", response_model=schemas.InvitationStatus)
def accept_invitation(
    token: str,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
):
    """Mark the invitation used and let the caller create a vendor listing."""
    invitation = crud.crud_onboarding.get_invitation_by_token(db, token)
    problem = _invitation_problem(invitation, datetime.utcnow())
    if invitation is None:
        raise NotFoundError("Invitation not found", {"token": "Not found"})
    if problem:
        raise ValidationError(problem, {"token": problem})
    if invitation.email != ctx.email:
        raise AuthorizationFailure("This invitation was sent to another email", {"token": "Forbidden"})
    invitation.accepted_at = datetime.utcnow()
    user = crud.user.get_user(db, ctx.user_id)
    if user is not None and user.role == models.UserRole.VIEWER:
        user.role = models.UserRole.VENDOR
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise RemoteFailure("Could not accept invitation; please retry") from exc
    logger.info("User %s accepted vendor invitation %s", ctx.user_id, invitation.id)
    return {"email": invitation.email, "valid": True, "reason": None}
