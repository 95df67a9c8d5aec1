from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from .base import BaseModel


class VendorRating(BaseModel):
    __tablename__ = "vendor_ratings"
    __table_args__ = (
        UniqueConstraint("vendor_id", "user_id", name="uq_vendor_ratings_vendor_user"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_vendor_ratings_range"),
    )

    id        = Column(Integer, primary_key=True, index=True)
    vendor_id = Column(Integer, ForeignKey("vendors.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id   = Column(Integer, ForeignKey("users.id"), nullable=False)
    rating    = Column(Integer, nullable=False)
    review    = Column(Text, nullable=True)

    user = relationship("User")
