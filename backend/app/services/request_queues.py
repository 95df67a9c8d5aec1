"""Grouping of booking requests into the per-role dashboard queues.

Every request is rendered as one tagged variant (``kind``) picked from its
status; queues are then filled by status and sorted by first event date.
"""

from __future__ import annotations

from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence, Type

from .. import models, schemas

S = models.RequestStatus

VARIANT_BY_STATUS: Dict[models.RequestStatus, Type[schemas.BookingRequestResponse]] = {
    S.PENDING: schemas.IncomingRequest,
    S.COUNTERED: schemas.CounterOfferRequest,
    S.ACCEPTED: schemas.PendingPaymentRequest,
    S.SETTLED_OFFLINE: schemas.PendingPaymentRequest,
    S.CONFIRMED: schemas.ConfirmedBooking,
    S.DECLINED: schemas.ClosedRequest,
    S.CANCELLED: schemas.ClosedRequest,
    S.EXPIRED: schemas.ClosedRequest,
}

# Queue name -> statuses it holds, in display order.
VENDOR_QUEUES: Dict[str, frozenset] = {
    "requests": frozenset({S.PENDING}),
    "countered": frozenset({S.COUNTERED}),
    "pending": frozenset({S.ACCEPTED, S.SETTLED_OFFLINE}),
    "booked": frozenset({S.CONFIRMED}),
    "closed": frozenset({S.DECLINED, S.CANCELLED, S.EXPIRED}),
}

VIEWER_QUEUES: Dict[str, frozenset] = {
    "requested": frozenset({S.PENDING}),
    "awaiting": frozenset({S.ACCEPTED, S.COUNTERED}),
    "settling": frozenset({S.SETTLED_OFFLINE}),
    "confirmed": frozenset({S.CONFIRMED}),
    "closed": frozenset({S.DECLINED, S.CANCELLED, S.EXPIRED}),
}


def first_event_date(dates: Iterable[date | str]) -> Optional[date]:
    """Earliest of a request's dates, or None when it has none."""
    parsed = [d if isinstance(d, date) else date.fromisoformat(d) for d in dates]
    return min(parsed) if parsed else None


def request_dates(request: models.BookingRequest) -> List[date]:
    return [d.event_date for d in request.dates]


def to_response(request: models.BookingRequest) -> dict:
    dates = request_dates(request)
    package = None
    if request.package is not None:
        package = schemas.PackageResponse.model_validate(request.package)
    return {
        "id": request.id,
        "vendor_id": request.vendor_id,
        "user_id": request.user_id,
        "package_id": request.package_id,
        "notes": request.notes,
        "requested_changes": request.requested_changes,
        "phone": request.phone,
        "guests": request.guests,
        "status": request.status,
        "counter_offer_details": request.counter_offer_details,
        "counter_offer_price": request.counter_offer_price,
        "version": request.version,
        "dates": dates,
        "first_date": first_event_date(dates),
        "package": package,
        "vendor_name": request.vendor.business_name if request.vendor else None,
        "requester_name": (
            (request.user.full_name or request.user.email) if request.user else None
        ),
        "created_at": request.created_at,
        "updated_at": request.updated_at,
    }


def to_variant(request: models.BookingRequest) -> schemas.BookingRequestResponse:
    variant_cls = VARIANT_BY_STATUS[models.RequestStatus(request.status)]
    return variant_cls(**to_response(request))


def sort_key(item: schemas.BookingRequestResponse):
    # Requests without dates sort last
    return (item.first_date is None, item.first_date or date.max, item.id)


def group_into_queues(
    requests: Sequence[models.BookingRequest],
    layout: Dict[str, frozenset],
) -> Dict[str, List[schemas.BookingRequestResponse]]:
    queues: Dict[str, List[schemas.BookingRequestResponse]] = {name: [] for name in layout}
    for request in requests:
        status = models.RequestStatus(request.status)
        for name, statuses in layout.items():
            if status in statuses:
                queues[name].append(to_variant(request))
                break
    for items in queues.values():
        items.sort(key=sort_key)
    return queues


def build_queues_response(
    role: str, requests: Sequence[models.BookingRequest]
) -> schemas.RequestQueuesResponse:
    layout = VENDOR_QUEUES if role == "vendor" else VIEWER_QUEUES
    queues = group_into_queues(requests, layout)
    return schemas.RequestQueuesResponse(
        role=role,
        queues=queues,
        counts={name: len(items) for name, items in queues.items()},
    )
