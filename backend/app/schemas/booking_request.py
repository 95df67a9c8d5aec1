from pydantic import BaseModel, Field
from typing import Annotated, Dict, List, Literal, Optional, Union
from datetime import date, datetime
from decimal import Decimal

from ..models.request_status import RequestAction, RequestStatus
from .vendor import PackageResponse


class BookingRequestCreate(BaseModel):
    vendor_id: int
    package_id: Optional[int] = None
    dates: List[date] = Field(default_factory=list)
    notes: Optional[str] = None
    requested_changes: Optional[str] = None
    phone: Optional[str] = None
    guests: Optional[int] = Field(default=None, ge=0)


class TransitionRequest(BaseModel):
    """Body of ``POST /booking-requests/{id}/transitions``."""

    action: RequestAction
    counter_offer_details: Optional[str] = None
    counter_offer_price: Optional[Decimal] = None
    # Optimistic concurrency token; omit to skip the check
    expected_version: Optional[int] = None


class BookingRequestResponse(BaseModel):
    id: int
    vendor_id: int
    user_id: int
    package_id: Optional[int] = None
    notes: Optional[str] = None
    requested_changes: Optional[str] = None
    phone: Optional[str] = None
    guests: Optional[int] = None
    status: RequestStatus
    counter_offer_details: Optional[str] = None
    counter_offer_price: Optional[Decimal] = None
    version: int
    dates: List[date] = Field(default_factory=list)
    first_date: Optional[date] = None
    package: Optional[PackageResponse] = None
    vendor_name: Optional[str] = None
    requester_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ─── Tagged variants ─────────────────────────────────────────────────────────
# Each list item carries a ``kind`` so clients branch on the variant rather
# than re-deriving meaning from raw status strings.
class IncomingRequest(BookingRequestResponse):
    kind: Literal["incoming"] = "incoming"


class CounterOfferRequest(BookingRequestResponse):
    kind: Literal["counter_offer"] = "counter_offer"


class PendingPaymentRequest(BookingRequestResponse):
    kind: Literal["pending_payment"] = "pending_payment"


class ConfirmedBooking(BookingRequestResponse):
    kind: Literal["confirmed"] = "confirmed"


class ClosedRequest(BookingRequestResponse):
    kind: Literal["closed"] = "closed"


BookingRequestVariant = Annotated[
    Union[
        IncomingRequest,
        CounterOfferRequest,
        PendingPaymentRequest,
        ConfirmedBooking,
        ClosedRequest,
    ],
    Field(discriminator="kind"),
]


class RequestQueuesResponse(BaseModel):
    role: Literal["vendor", "viewer"]
    queues: Dict[str, List[BookingRequestVariant]]
    counts: Dict[str, int]
