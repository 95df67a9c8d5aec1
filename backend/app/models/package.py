from sqlalchemy import Column, ForeignKey, Integer, JSON, Numeric, String, Text
from sqlalchemy.orm import relationship
import enum

from .base import BaseModel
from .types import CaseInsensitiveEnum


class PricingType(str, enum.Enum):
    FIXED = "fixed"
    PER_PERSON = "per_person"


class Package(BaseModel):
    __tablename__ = "packages"

    id               = Column(Integer, primary_key=True, index=True)
    vendor_id        = Column(Integer, ForeignKey("vendors.id", ondelete="CASCADE"), nullable=False, index=True)
    title            = Column(String, nullable=False)
    pricing_type     = Column(
        CaseInsensitiveEnum(PricingType, name="pricingtype"),
        nullable=False,
        default=PricingType.FIXED,
    )
    price            = Column(Numeric(12, 2), nullable=True)
    price_per_person = Column(Numeric(12, 2), nullable=True)
    min_persons      = Column(Integer, nullable=True)
    duration_label   = Column(String, nullable=True)
    deliverables     = Column(JSON, nullable=True)
    terms            = Column(Text, nullable=True)

    vendor = relationship("Vendor", back_populates="packages")
    extras = relationship(
        "PackageExtra",
        back_populates="package",
        cascade="all, delete-orphan",
        order_by="PackageExtra.id",
    )


class PackageExtra(BaseModel):
    __tablename__ = "package_extras"

    id             = Column(Integer, primary_key=True, index=True)
    package_id     = Column(Integer, ForeignKey("packages.id", ondelete="CASCADE"), nullable=False, index=True)
    name           = Column(String, nullable=False)
    available_qty  = Column(Integer, nullable=True)
    price_per_unit = Column(Numeric(12, 2), nullable=True)

    package = relationship("Package", back_populates="extras")
