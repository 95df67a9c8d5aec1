from sqlalchemy import Column, Date, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from .base import BaseModel


class Booking(BaseModel):
    """A confirmed occupancy of one vendor calendar date."""

    __tablename__ = "bookings"

    id         = Column(Integer, primary_key=True, index=True)
    vendor_id  = Column(Integer, ForeignKey("vendors.id"), nullable=False, index=True)
    request_id = Column(Integer, ForeignKey("booking_requests.id", ondelete="SET NULL"), nullable=True, index=True)
    user_id    = Column(Integer, ForeignKey("users.id"), nullable=True)
    event_date = Column(Date, nullable=False, index=True)
    notes      = Column(String, nullable=True)

    request = relationship("BookingRequest")
