"""Booking request negotiation workflow.

All status changes go through :func:`apply_action`, which consults the single
``TRANSITIONS`` table via :func:`resolve_transition`. Writes are
compare-and-set on ``(status, version)`` so two racing writers cannot both
succeed; the loser either sees an idempotent no-op (same target) or a
:class:`ConflictError`.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Dict, FrozenSet, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import crud, models, schemas
from ..core.config import settings
from ..core.session import SessionContext
from ..utils import messages, redis_cache
from ..utils.errors import (
    AuthorizationFailure,
    BookingError,
    ConflictError,
    NotFoundError,
    RemoteFailure,
    TransitionError,
    ValidationError,
)
from .availability_service import load_month_calendar

logger = logging.getLogger(__name__)

S = models.RequestStatus
A = models.RequestAction


class Actor(str, enum.Enum):
    VENDOR = "vendor"
    VIEWER = "viewer"
    ADMIN = "admin"


@dataclass(frozen=True)
class Transition:
    actor: Actor
    sources: FrozenSet[models.RequestStatus]
    target: models.RequestStatus


TRANSITIONS: Dict[models.RequestAction, Transition] = {
    A.ACCEPT: Transition(Actor.VENDOR, frozenset({S.PENDING}), S.ACCEPTED),
    A.DECLINE: Transition(Actor.VENDOR, frozenset({S.PENDING}), S.DECLINED),
    A.COUNTER: Transition(Actor.VENDOR, frozenset({S.PENDING}), S.COUNTERED),
    A.CONFIRM_PAYMENT: Transition(Actor.VENDOR, frozenset({S.ACCEPTED}), S.CONFIRMED),
    A.ACCEPT_COUNTER: Transition(Actor.VIEWER, frozenset({S.COUNTERED}), S.ACCEPTED),
    A.SETTLE_OFFLINE: Transition(
        Actor.VIEWER, frozenset({S.ACCEPTED, S.COUNTERED}), S.SETTLED_OFFLINE
    ),
    A.CONFIRM_SETTLEMENT: Transition(
        Actor.VENDOR, frozenset({S.SETTLED_OFFLINE}), S.CONFIRMED
    ),
    A.CANCEL: Transition(
        Actor.VIEWER, frozenset({S.PENDING, S.COUNTERED, S.ACCEPTED}), S.CANCELLED
    ),
    A.EXPIRE: Transition(Actor.ADMIN, frozenset({S.PENDING, S.COUNTERED}), S.EXPIRED),
}

# Transitions that write occupancy rows for every requested date
_BOOKING_ACTIONS = frozenset({A.CONFIRM_PAYMENT, A.CONFIRM_SETTLEMENT})


@dataclass
class TransitionOutcome:
    request: models.BookingRequest
    previous_status: models.RequestStatus
    changed: bool


def resolve_transition(
    current: models.RequestStatus | str,
    action: models.RequestAction | str,
) -> Optional[models.RequestStatus]:
    """Return the status ``action`` moves a request in ``current`` to.

    Returns None when the request already holds the target status (the call
    is a no-op). Raises :class:`TransitionError` when the action is not
    allowed from ``current``.
    """
    current = models.RequestStatus(current)
    action = models.RequestAction(action)
    transition = TRANSITIONS[action]
    if current == transition.target:
        return None
    if current.is_terminal:
        raise TransitionError(
            f"Booking request is already {current.value}",
            {"status": current.value},
        )
    if current not in transition.sources:
        raise TransitionError(
            f"Cannot {action.value} a request that is {current.value}",
            {"status": current.value},
        )
    return transition.target


def actor_for(action: models.RequestAction | str) -> Actor:
    return TRANSITIONS[models.RequestAction(action)].actor


def authorize(ctx: SessionContext, request: models.BookingRequest, action: models.RequestAction) -> None:
    actor = actor_for(action)
    if actor == Actor.VENDOR:
        allowed = ctx.vendor_id is not None and ctx.vendor_id == request.vendor_id
    elif actor == Actor.VIEWER:
        allowed = ctx.user_id == request.user_id
    else:
        allowed = ctx.is_admin
    if not allowed:
        logger.warning(
            "User %s may not %s booking request %s",
            ctx.user_id,
            action.value,
            request.id,
        )
        raise AuthorizationFailure(
            "You are not allowed to perform this action on this booking request",
            {"request_id": "Forbidden"},
        )


def _validate_counter_offer(details: Optional[str], price) -> dict:
    text = (details or "").strip()
    if not text:
        raise ValidationError(
            "Counter offer details are required",
            {"counter_offer_details": "Required"},
        )
    amount = None
    if price is not None:
        try:
            amount = Decimal(str(price))
        except (InvalidOperation, ValueError):
            raise ValidationError(
                "Invalid counter offer price",
                {"counter_offer_price": "Must be a number"},
            ) from None
        if not amount.is_finite() or amount < 0:
            raise ValidationError(
                "Invalid counter offer price",
                {"counter_offer_price": "Must be zero or greater"},
            )
    return {"counter_offer_details": text, "counter_offer_price": amount}


def _requester_name(request: models.BookingRequest) -> str:
    user = request.user
    if user is None:
        return "A customer"
    return user.full_name or user.email


def _vendor_user_id(request: models.BookingRequest) -> Optional[int]:
    return request.vendor.user_id if request.vendor else None


def _notify(db: Session, sender_id: Optional[int], receiver_id: Optional[int], request_id: int, content: str) -> None:
    if sender_id is None or receiver_id is None:
        return
    crud.crud_message.create_message(
        db,
        sender_id=sender_id,
        receiver_id=receiver_id,
        booking_request_id=request_id,
        content=content,
    )


def _apply_side_effects(
    db: Session,
    request: models.BookingRequest,
    action: models.RequestAction,
    values: dict,
) -> None:
    vendor_user_id = _vendor_user_id(request)
    business = request.vendor.business_name if request.vendor else "The vendor"
    requester = _requester_name(request)

    if action == A.ACCEPT:
        _notify(db, vendor_user_id, request.user_id, request.id, messages.accepted_message(business))
    elif action == A.DECLINE:
        _notify(db, vendor_user_id, request.user_id, request.id, messages.declined_message(business))
    elif action == A.COUNTER:
        _notify(
            db,
            vendor_user_id,
            request.user_id,
            request.id,
            messages.counter_offer_message(business, values.get("counter_offer_price")),
        )
    elif action == A.ACCEPT_COUNTER:
        _notify(db, request.user_id, vendor_user_id, request.id, messages.counter_accepted_message(requester))
    elif action == A.SETTLE_OFFLINE:
        if vendor_user_id is not None:
            crud.crud_message.mark_read_containing(
                db,
                receiver_id=vendor_user_id,
                phrase=settings.SETTLEMENT_MARKER,
                booking_request_id=request.id,
            )
        _notify(
            db,
            request.user_id,
            vendor_user_id,
            request.id,
            messages.settle_offline_message(requester, request.id),
        )
    elif action == A.CONFIRM_SETTLEMENT:
        if vendor_user_id is not None:
            crud.crud_message.mark_read_containing(
                db,
                receiver_id=vendor_user_id,
                phrase=settings.SETTLEMENT_MARKER,
            )
        _notify(db, vendor_user_id, request.user_id, request.id, messages.confirmed_message(business))
    elif action == A.CONFIRM_PAYMENT:
        _notify(db, vendor_user_id, request.user_id, request.id, messages.confirmed_message(business))
    elif action == A.CANCEL:
        _notify(db, request.user_id, vendor_user_id, request.id, messages.cancelled_message(requester))

    if action in _BOOKING_ACTIONS:
        crud.crud_availability.create_bookings_for_request(db, request)


def _invalidate_caches(request: models.BookingRequest, action: models.RequestAction) -> None:
    redis_cache.invalidate_request_queues("vendor", request.vendor_id)
    redis_cache.invalidate_request_queues("viewer", request.user_id)
    if action in _BOOKING_ACTIONS:
        redis_cache.invalidate_calendar_cache(request.vendor_id)


def _load(db: Session, request_id: int) -> models.BookingRequest:
    try:
        request = crud.crud_booking_request.get_booking_request(db, request_id)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Could not load booking request %s: %s", request_id, exc)
        raise RemoteFailure("Could not load booking request; please retry") from exc
    if request is None:
        raise NotFoundError("Booking request not found", {"request_id": "Not found"})
    return request


def apply_action(
    db: Session,
    ctx: SessionContext,
    request_id: int,
    action: models.RequestAction | str,
    *,
    counter_offer_details: Optional[str] = None,
    counter_offer_price=None,
    expected_version: Optional[int] = None,
) -> TransitionOutcome:
    """Move a booking request through one step of the negotiation."""
    try:
        action = models.RequestAction(action)
    except ValueError:
        raise ValidationError("Unknown action", {"action": f"Unsupported value {action!r}"}) from None

    values: dict = {}
    if action == A.COUNTER:
        values = _validate_counter_offer(counter_offer_details, counter_offer_price)

    request = _load(db, request_id)
    authorize(ctx, request, action)

    current = models.RequestStatus(request.status)
    target = resolve_transition(current, action)
    if target is None:
        logger.info(
            "Booking request %s already %s; %s is a no-op",
            request.id,
            current.value,
            action.value,
        )
        # The caller may already have edited its cached queue optimistically
        _invalidate_caches(request, action)
        return TransitionOutcome(request=request, previous_status=current, changed=False)

    if expected_version is not None and expected_version != request.version:
        raise ConflictError(
            "Booking request was changed by someone else; reload and try again",
            {"version": f"expected {expected_version}, found {request.version}"},
        )

    try:
        written = crud.crud_booking_request.update_request_status(
            db,
            request_id=request.id,
            from_status=current,
            from_version=request.version,
            to_status=target,
            values=values,
        )
        if not written:
            db.rollback()
            db.expire_all()
            latest = _load(db, request_id)
            if models.RequestStatus(latest.status) == target:
                _invalidate_caches(latest, action)
                return TransitionOutcome(request=latest, previous_status=current, changed=False)
            raise ConflictError(
                "Booking request was changed by someone else; reload and try again",
                {"status": models.RequestStatus(latest.status).value},
            )
        _apply_side_effects(db, request, action, values)
        db.commit()
        db.expire_all()
        updated = crud.crud_booking_request.get_booking_request(db, request_id)
    except BookingError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(
            "Failed to %s booking request %s: %s", action.value, request_id, exc
        )
        raise RemoteFailure("Could not update booking request; please retry") from exc

    # The bulk UPDATE bypasses attribute listeners, so log here.
    logger.info(
        "BookingRequest id=%s status changed from %s to %s by user %s",
        request_id,
        current.value,
        target.value,
        ctx.user_id,
    )
    _invalidate_caches(updated, action)
    return TransitionOutcome(request=updated, previous_status=current, changed=True)


def submit_request(
    db: Session,
    ctx: SessionContext,
    payload: schemas.BookingRequestCreate,
) -> models.BookingRequest:
    """Create a pending booking request for the calling viewer."""
    dates = sorted(set(payload.dates))
    if not dates:
        raise ValidationError(
            "Select at least one date",
            {"dates": "At least one date is required"},
        )

    vendor = crud.crud_vendor.get_vendor(db, payload.vendor_id)
    if vendor is None:
        raise NotFoundError("Vendor not found", {"vendor_id": "Not found"})
    if vendor.user_id == ctx.user_id:
        raise ValidationError(
            "You cannot request your own listing",
            {"vendor_id": "Own listing"},
        )

    if payload.package_id is not None:
        package = crud.crud_package.get_package(db, payload.package_id)
        if package is None or package.vendor_id != vendor.id:
            raise ValidationError(
                "Package does not belong to this vendor",
                {"package_id": "Invalid package"},
            )

    field_errors = {}
    for d in dates:
        calendar = load_month_calendar(db, vendor.id, d.year, d.month)
        day = calendar.day(d)
        if day is None or not day.selectable:
            field_errors[d.isoformat()] = f"Date is {day.status.value if day else 'unavailable'}"
    if field_errors:
        raise ValidationError("Some dates are not available", field_errors)

    try:
        request = crud.crud_booking_request.create_booking_request(
            db,
            vendor_id=vendor.id,
            user_id=ctx.user_id,
            dates=dates,
            package_id=payload.package_id,
            notes=payload.notes,
            requested_changes=payload.requested_changes,
            phone=payload.phone,
            guests=payload.guests,
        )
        requester = db.query(models.User).filter(models.User.id == ctx.user_id).first()
        name = (requester.full_name or requester.email) if requester else "A customer"
        _notify(
            db,
            ctx.user_id,
            vendor.user_id,
            request.id,
            messages.new_request_message(name, [d.isoformat() for d in dates]),
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Failed to create booking request for vendor %s: %s", vendor.id, exc)
        raise RemoteFailure("Could not submit booking request; please retry") from exc

    logger.info(
        "Booking request %s created by user %s for vendor %s (%d dates)",
        request.id,
        ctx.user_id,
        vendor.id,
        len(dates),
    )
    redis_cache.invalidate_request_queues("vendor", vendor.id)
    redis_cache.invalidate_request_queues("viewer", ctx.user_id)
    return crud.crud_booking_request.get_booking_request(db, request.id)


def expire_stale_requests(
    db: Session,
    ctx: SessionContext,
    older_than_days: Optional[int] = None,
    now: Optional[datetime] = None,
) -> List[int]:
    """Expire pending or countered requests untouched for ``older_than_days``."""
    days = settings.REQUEST_EXPIRY_DAYS if older_than_days is None else older_than_days
    cutoff = (now or datetime.utcnow()) - timedelta(days=days)
    sources = TRANSITIONS[A.EXPIRE].sources
    try:
        candidates = crud.crud_booking_request.find_stale_request_ids(db, sources, cutoff)
    except SQLAlchemyError as exc:
        db.rollback()
        raise RemoteFailure("Could not list stale booking requests; please retry") from exc

    expired = []
    for request_id in candidates:
        try:
            outcome = apply_action(db, ctx, request_id, A.EXPIRE)
        except ConflictError as exc:
            # Someone acted on it meanwhile; leave it alone
            logger.info("Skipping expiry of booking request %s: %s", request_id, exc.message)
            continue
        except TransitionError as exc:
            logger.info("Skipping expiry of booking request %s: %s", request_id, exc.message)
            continue
        if outcome.changed:
            expired.append(request_id)
    logger.info("Expired %d stale booking requests older than %s", len(expired), cutoff)
    return expired
