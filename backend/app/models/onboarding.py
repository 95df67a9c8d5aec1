from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
import enum

from .base import BaseModel
from .types import CaseInsensitiveEnum


class ApplicationStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class VendorOnboardingApplication(BaseModel):
    __tablename__ = "vendor_onboarding_applications"

    id               = Column(Integer, primary_key=True, index=True)
    user_id          = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    business_name    = Column(String, nullable=False)
    category         = Column(String, nullable=False)
    location         = Column(String, nullable=False)
    description      = Column(Text, nullable=True)
    contact_phone    = Column(String, nullable=True)
    status           = Column(
        CaseInsensitiveEnum(ApplicationStatus, name="applicationstatus"),
        default=ApplicationStatus.PENDING,
        nullable=False,
        index=True,
    )
    rejection_reason = Column(Text, nullable=True)
    vendor_id        = Column(Integer, ForeignKey("vendors.id"), nullable=True)


class VendorInvitation(BaseModel):
    __tablename__ = "vendor_invitations"

    id          = Column(Integer, primary_key=True, index=True)
    email       = Column(String, nullable=False, index=True)
    token       = Column(String, nullable=False, unique=True, index=True)
    invited_by  = Column(Integer, ForeignKey("users.id"), nullable=True)
    expires_at  = Column(DateTime, nullable=False)
    accepted_at = Column(DateTime, nullable=True)
