from pydantic import BaseModel, EmailStr, Field
from typing import List, Optional
from datetime import date, datetime

from ..models.onboarding import ApplicationStatus
from ..models.request_status import RequestStatus


class AdminAnalytics(BaseModel):
    total_users: int
    total_vendors: int
    verified_vendors: int
    pending_vendors: int
    confirmed_requests: int
    requests_by_status: dict[str, int]


class AdminRequestRow(BaseModel):
    id: int
    vendor_id: int
    vendor_name: Optional[str] = None
    user_id: int
    requester_name: Optional[str] = None
    status: RequestStatus
    first_date: Optional[date] = None
    date_count: int
    created_at: Optional[datetime] = None


class RejectPayload(BaseModel):
    reason: Optional[str] = None


class ExpireResult(BaseModel):
    expired: List[int]


class OnboardingApplicationCreate(BaseModel):
    business_name: str = Field(min_length=1)
    category: str
    location: str
    description: Optional[str] = None
    contact_phone: Optional[str] = None


class OnboardingApplicationResponse(OnboardingApplicationCreate):
    id: int
    user_id: int
    status: ApplicationStatus
    rejection_reason: Optional[str] = None
    vendor_id: Optional[int] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class InvitationCreate(BaseModel):
    email: EmailStr


class InvitationResponse(BaseModel):
    id: int
    email: str
    token: str
    expires_at: datetime
    accepted_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class InvitationStatus(BaseModel):
    email: str
    valid: bool
    reason: Optional[str] = None
