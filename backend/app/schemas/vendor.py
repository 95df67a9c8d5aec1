from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from decimal import Decimal

from ..models.vendor import VendorStatus
from ..models.package import PricingType


class VendorBase(BaseModel):
    business_name: str = Field(min_length=1)
    description: Optional[str] = None
    category: str
    location: str
    price_range: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    website: Optional[str] = None
    portfolio_images: List[str] = Field(default_factory=list)


class VendorCreate(VendorBase):
    pass


class VendorUpdate(BaseModel):
    """Partial profile update by the owning vendor."""

    business_name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    category: Optional[str] = None
    location: Optional[str] = None
    price_range: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    website: Optional[str] = None
    portfolio_images: Optional[List[str]] = None


class VendorResponse(VendorBase):
    id: int
    user_id: int
    is_verified: bool
    status: VendorStatus
    portfolio_images: Optional[List[str]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class VendorDetailResponse(VendorResponse):
    average_rating: float = 0.0
    total_ratings: int = 0
    view_count: int = 0
    packages: List["PackageResponse"] = Field(default_factory=list)


# ─── Packages ────────────────────────────────────────────────────────────────
class PackageExtraBase(BaseModel):
    name: str = Field(min_length=1)
    available_qty: Optional[int] = Field(default=None, ge=0)
    price_per_unit: Optional[Decimal] = Field(default=None, ge=0)


class PackageExtraResponse(PackageExtraBase):
    id: int

    model_config = {"from_attributes": True}


class PackageBase(BaseModel):
    title: str = Field(min_length=1)
    pricing_type: PricingType = PricingType.FIXED
    price: Optional[Decimal] = Field(default=None, ge=0)
    price_per_person: Optional[Decimal] = Field(default=None, ge=0)
    min_persons: Optional[int] = Field(default=None, ge=1)
    duration_label: Optional[str] = None
    deliverables: List[str] = Field(default_factory=list)
    terms: Optional[str] = None


class PackageCreate(PackageBase):
    extras: List[PackageExtraBase] = Field(default_factory=list)


class PackageUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    pricing_type: Optional[PricingType] = None
    price: Optional[Decimal] = Field(default=None, ge=0)
    price_per_person: Optional[Decimal] = Field(default=None, ge=0)
    min_persons: Optional[int] = Field(default=None, ge=1)
    duration_label: Optional[str] = None
    deliverables: Optional[List[str]] = None
    terms: Optional[str] = None
    # When present the extras list is replaced wholesale
    extras: Optional[List[PackageExtraBase]] = None


class PackageResponse(PackageBase):
    id: int
    vendor_id: int
    deliverables: Optional[List[str]] = None
    extras: List[PackageExtraResponse] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class ExtraSelection(BaseModel):
    extra_id: int
    quantity: int = Field(ge=0)


class PackageEstimateRequest(BaseModel):
    persons: Optional[int] = Field(default=None, ge=0)
    extras: List[ExtraSelection] = Field(default_factory=list)


class PackageEstimateLine(BaseModel):
    label: str
    quantity: int
    unit_price: Decimal
    amount: Decimal


class PackageEstimateResponse(BaseModel):
    package_id: int
    currency: str
    billable_persons: Optional[int] = None
    lines: List[PackageEstimateLine]
    total: Decimal


VendorDetailResponse.model_rebuild()
