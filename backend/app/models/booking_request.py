from sqlalchemy import (
    Column,
    Date,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .base import BaseModel
from .request_status import RequestStatus
from .types import CaseInsensitiveEnum


class BookingRequest(BaseModel):
    """A negotiation between one viewer and one vendor for one or more dates."""

    __tablename__ = "booking_requests"

    id         = Column(Integer, primary_key=True, index=True)
    vendor_id  = Column(Integer, ForeignKey("vendors.id"), nullable=False, index=True)
    user_id    = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    package_id = Column(Integer, ForeignKey("packages.id", ondelete="SET NULL"), nullable=True)

    notes             = Column(Text, nullable=True)
    requested_changes = Column(Text, nullable=True)
    phone             = Column(String, nullable=True)
    guests            = Column(Integer, nullable=True)

    status = Column(
        CaseInsensitiveEnum(RequestStatus, name="requeststatus"),
        nullable=False,
        default=RequestStatus.PENDING,
        index=True,
    )
    counter_offer_details = Column(Text, nullable=True)
    counter_offer_price   = Column(Numeric(12, 2), nullable=True)

    # Bumped on every status write; stale writers are rejected
    version = Column(Integer, nullable=False, default=1)

    vendor  = relationship("Vendor", back_populates="booking_requests")
    user    = relationship("User", foreign_keys=[user_id], back_populates="booking_requests")
    package = relationship("Package")
    dates   = relationship(
        "BookingRequestDate",
        back_populates="request",
        cascade="all, delete-orphan",
        order_by="BookingRequestDate.event_date",
    )


class BookingRequestDate(BaseModel):
    __tablename__ = "booking_request_dates"
    __table_args__ = (
        UniqueConstraint("request_id", "event_date", name="uq_booking_request_dates_request_date"),
    )

    id         = Column(Integer, primary_key=True, index=True)
    request_id = Column(Integer, ForeignKey("booking_requests.id", ondelete="CASCADE"), nullable=False, index=True)
    event_date = Column(Date, nullable=False, index=True)

    request = relationship("BookingRequest", back_populates="dates")
