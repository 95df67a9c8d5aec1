from sqlalchemy import Column, Date, ForeignKey, Integer, JSON, UniqueConstraint
from sqlalchemy.orm import relationship

from .base import BaseModel


class AvailabilitySettings(BaseModel):
    __tablename__ = "vendor_availability_settings"

    id            = Column(Integer, primary_key=True, index=True)
    vendor_id     = Column(Integer, ForeignKey("vendors.id", ondelete="CASCADE"), nullable=False, unique=True)
    # {"Mon": false, "Tue": false, ..., "Sun": true}
    days_off      = Column(JSON, nullable=True)
    slots_per_day = Column(Integer, nullable=True)

    vendor = relationship("Vendor", back_populates="availability_settings")


class BlockedDate(BaseModel):
    __tablename__ = "vendor_blocked_dates"
    __table_args__ = (
        UniqueConstraint("vendor_id", "date", name="uq_vendor_blocked_dates_vendor_date"),
    )

    id        = Column(Integer, primary_key=True, index=True)
    vendor_id = Column(Integer, ForeignKey("vendors.id", ondelete="CASCADE"), nullable=False, index=True)
    date      = Column(Date, nullable=False)

    vendor = relationship("Vendor", back_populates="blocked_dates")
