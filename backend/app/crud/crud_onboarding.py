from sqlalchemy.orm import Session
from datetime import datetime
from typing import List, Optional

from .. import models, schemas


def create_application(
    db: Session, user_id: int, app_in: schemas.OnboardingApplicationCreate
) -> models.VendorOnboardingApplication:
    application = models.VendorOnboardingApplication(user_id=user_id, **app_in.model_dump())
    db.add(application)
    db.flush()
    return application


def get_application(db: Session, application_id: int) -> Optional[models.VendorOnboardingApplication]:
    return (
        db.query(models.VendorOnboardingApplication)
        .filter(models.VendorOnboardingApplication.id == application_id)
        .first()
    )


def list_applications(
    db: Session, status: Optional[models.ApplicationStatus] = None
) -> List[models.VendorOnboardingApplication]:
    query = db.query(models.VendorOnboardingApplication)
    if status is not None:
        query = query.filter(models.VendorOnboardingApplication.status == status)
    return query.order_by(models.VendorOnboardingApplication.id.desc()).all()


def create_invitation(
    db: Session, email: str, token: str, expires_at: datetime, invited_by: Optional[int]
) -> models.VendorInvitation:
    invitation = models.VendorInvitation(
        email=email, token=token, expires_at=expires_at, invited_by=invited_by
    )
    db.add(invitation)
    db.flush()
    return invitation


def get_invitation_by_token(db: Session, token: str) -> Optional[models.VendorInvitation]:
    return db.query(models.VendorInvitation).filter(models.VendorInvitation.token == token).first()
