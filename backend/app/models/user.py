from sqlalchemy import Boolean, Column, Integer, String
from sqlalchemy.orm import relationship
from .base import BaseModel
from .types import CaseInsensitiveEnum
import enum


class UserRole(str, enum.Enum):
    """Enumeration of all supported user roles."""

    VIEWER = "viewer"
    VENDOR = "vendor"
    ADMIN = "admin"


class User(BaseModel):
    __tablename__ = "users"

    id         = Column(Integer, primary_key=True, index=True)
    email      = Column(String, unique=True, index=True, nullable=False)
    password   = Column(String, nullable=False)
    full_name  = Column(String, nullable=True)
    phone      = Column(String, nullable=True)
    avatar_url = Column(String, nullable=True)
    role       = Column(CaseInsensitiveEnum(UserRole, name="userrole"), nullable=False, default=UserRole.VIEWER)
    is_active  = Column(Boolean, default=True, nullable=False)

    # A vendor user owns exactly one vendor listing
    vendor = relationship("Vendor", back_populates="user", uselist=False)

    booking_requests = relationship(
        "BookingRequest",
        foreign_keys="BookingRequest.user_id",
        back_populates="user",
    )
