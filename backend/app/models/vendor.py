from sqlalchemy import Boolean, Column, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import relationship
import enum

from .base import BaseModel
from .types import CaseInsensitiveEnum


class VendorStatus(str, enum.Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"
    SUSPENDED = "suspended"


class Vendor(BaseModel):
    __tablename__ = "vendors"

    id               = Column(Integer, primary_key=True, index=True)
    user_id          = Column(Integer, ForeignKey("users.id"), nullable=False, unique=True)
    business_name    = Column(String, nullable=False)
    description      = Column(Text, nullable=True)
    category         = Column(String, nullable=False, index=True)
    location         = Column(String, nullable=False, index=True)
    price_range      = Column(String, nullable=True)
    contact_email    = Column(String, nullable=True)
    contact_phone    = Column(String, nullable=True)
    website          = Column(String, nullable=True)
    portfolio_images = Column(JSON, nullable=True)
    is_verified      = Column(Boolean, default=False, nullable=False)
    status           = Column(
        CaseInsensitiveEnum(VendorStatus, name="vendorstatus"),
        default=VendorStatus.PENDING,
        nullable=False,
        index=True,
    )
    rejection_reason = Column(Text, nullable=True)

    user     = relationship("User", back_populates="vendor")
    packages = relationship("Package", back_populates="vendor", cascade="all, delete-orphan")
    availability_settings = relationship(
        "AvailabilitySettings",
        back_populates="vendor",
        uselist=False,
        cascade="all, delete-orphan",
    )
    blocked_dates = relationship("BlockedDate", back_populates="vendor", cascade="all, delete-orphan")
    booking_requests = relationship("BookingRequest", back_populates="vendor")
