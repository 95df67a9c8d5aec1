from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from .base import BaseModel


class VendorView(BaseModel):
    __tablename__ = "vendor_views"

    id         = Column(Integer, primary_key=True, index=True)
    vendor_id  = Column(Integer, ForeignKey("vendors.id", ondelete="CASCADE"), nullable=False, index=True)
    viewer_id  = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    user_agent = Column(String, nullable=True)
    viewed_at  = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
