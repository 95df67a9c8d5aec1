from fastapi import APIRouter, Depends, status
from fastapi.responses import ORJSONResponse
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session
from typing import Callable, List, Optional
import logging

from .. import crud, models, schemas
from ..core.session import SessionContext
from ..services import request_workflow
from ..services.request_queues import build_queues_response, to_variant
from ..utils import redis_cache
from ..utils.compensation import CompensatingAction
from ..utils.errors import AuthorizationFailure, NotFoundError
from .dependencies import get_db, get_session_context, require_vendor

# Prefix is added when this router is included in `app/main.py`.
router = APIRouter(
    tags=["Booking Requests"],
    default_response_class=ORJSONResponse,
)

logger = logging.getLogger(__name__)

# Actions whose request leaves the caller's list immediately, before the
# write lands. Maps to the role whose cached list is edited; the owner id
# comes from the caller's session (see _queue_owner).
_OPTIMISTIC_REMOVALS = {
    models.RequestAction.DECLINE: "vendor",
    models.RequestAction.CONFIRM_SETTLEMENT: "vendor",
    models.RequestAction.SETTLE_OFFLINE: "viewer",
}


def _queue_owner(role: str, ctx: SessionContext) -> Optional[int]:
    return ctx.vendor_id if role == "vendor" else ctx.user_id


def _load_queues(
    role: str,
    owner_id: int,
    loader: Callable[[], List[models.BookingRequest]],
) -> schemas.RequestQueuesResponse:
    cached = redis_cache.get_cached_request_queues(role, owner_id)
    if cached:
        try:
            return schemas.RequestQueuesResponse(
                role=role,
                queues=cached,
                counts={name: len(items) for name, items in cached.items()},
            )
        except PydanticValidationError as exc:
            logger.warning("Discarding malformed cached %s queues for %s: %s", role, owner_id, exc)
    response = build_queues_response(role, loader())
    redis_cache.cache_request_queues(
        response.model_dump(mode="json")["queues"], role, owner_id
    )
    return response


@router.post(
    "/",
    response_model=schemas.BookingRequestVariant,
    status_code=status.HTTP_201_CREATED,
)
def create_booking_request(
    request_in: schemas.BookingRequestCreate,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
):
    """Submit a booking request for one or more dates."""
    request = request_workflow.submit_request(db, ctx, request_in)
    return to_variant(request)


@router.get("/vendor", response_model=schemas.RequestQueuesResponse)
def read_vendor_requests(
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(require_vendor),
):
    return _load_queues(
        "vendor",
        ctx.vendor_id,
        lambda: crud.crud_booking_request.get_booking_requests_by_vendor(db, ctx.vendor_id),
    )


@router.get("/me", response_model=schemas.RequestQueuesResponse)
def read_my_requests(
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
):
    return _load_queues(
        "viewer",
        ctx.user_id,
        lambda: crud.crud_booking_request.get_booking_requests_by_user(db, ctx.user_id),
    )


@router.get("/{request_id}", response_model=schemas.BookingRequestVariant)
def read_booking_request(
    request_id: int,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
):
    request = crud.crud_booking_request.get_booking_request(db, request_id)
    if request is None:
        raise NotFoundError("Booking request not found", {"request_id": "Not found"})
    if not (
        ctx.is_admin
        or request.user_id == ctx.user_id
        or (ctx.vendor_id is not None and request.vendor_id == ctx.vendor_id)
    ):
        logger.warning("User %s may not view booking request %s", ctx.user_id, request_id)
        raise AuthorizationFailure(
            "Not authorized to access this request",
            {"request_id": "Forbidden"},
        )
    return to_variant(request)


@router.post("/{request_id}/transitions", response_model=schemas.BookingRequestVariant)
def transition_booking_request(
    request_id: int,
    transition_in: schemas.TransitionRequest,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
):
    """Accept, decline, counter, confirm, settle, cancel or expire a request."""

    def remote():
        return request_workflow.apply_action(
            db,
            ctx,
            request_id,
            transition_in.action,
            counter_offer_details=transition_in.counter_offer_details,
            counter_offer_price=transition_in.counter_offer_price,
            expected_version=transition_in.expected_version,
        )

    role = _OPTIMISTIC_REMOVALS.get(transition_in.action)
    owner_id = _queue_owner(role, ctx) if role else None
    if role is None or owner_id is None:
        outcome = remote()
    else:
        removed: dict = {}
        optimistic = CompensatingAction(
            label=f"{transition_in.action.value} request {request_id}",
            forward=lambda: removed.update(
                record=redis_cache.remove_from_cached_queue(role, owner_id, request_id)
            ),
            inverse=lambda: redis_cache.restore_to_cached_queue(
                role, owner_id, removed.get("record")
            ),
        )
        outcome = optimistic.run(remote)
    return to_variant(outcome.request)
