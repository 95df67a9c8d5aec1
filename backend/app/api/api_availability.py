from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.responses import ORJSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from datetime import date
from typing import List, Optional
import logging

from .. import crud, models, schemas
from ..core.session import SessionContext
from ..services.availability_calendar import DateSelection, normalize_days_off, parse_month
from ..services.availability_service import load_month_calendar
from ..utils import redis_cache
from ..utils.errors import AuthorizationFailure, NotFoundError, RemoteFailure, ValidationError
from .dependencies import get_db, get_session_context

router = APIRouter(tags=["Availability"], default_response_class=ORJSONResponse)

logger = logging.getLogger(__name__)


def _get_vendor_or_404(db: Session, vendor_id: int) -> models.Vendor:
    vendor = db.query(models.Vendor).filter(models.Vendor.id == vendor_id).first()
    if vendor is None:
        raise NotFoundError("Vendor not found", {"vendor_id": "Not found"})
    return vendor


def _ensure_owner(ctx: SessionContext, vendor_id: int, allow_admin: bool = False) -> None:
    if ctx.vendor_id == vendor_id or (allow_admin and ctx.is_admin):
        return
    logger.warning("User %s may not manage availability of vendor %s", ctx.user_id, vendor_id)
    raise AuthorizationFailure(
        "Only the vendor can manage this calendar",
        {"vendor_id": "Forbidden"},
    )


def _commit(db: Session, what: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Could not save %s: %s", what, exc)
        raise RemoteFailure(f"Could not save {what}; please retry") from exc


@router.get("/{vendor_id}/calendar", response_model=schemas.MonthCalendarResponse)
def read_month_calendar(
    vendor_id: int,
    month: str = Query(..., description="Month as YYYY-MM"),
    db: Session = Depends(get_db),
):
    """Per-day availability for one month of a vendor's calendar."""
    _get_vendor_or_404(db, vendor_id)
    try:
        year, month_no = parse_month(month)
    except ValueError as exc:
        raise ValidationError(str(exc), {"month": "Expected YYYY-MM"}) from None
    calendar = load_month_calendar(db, vendor_id, year, month_no)
    return {"vendor_id": vendor_id, **calendar.to_dict()}


@router.post("/{vendor_id}/calendar/selection", response_model=schemas.SelectionResponse)
def toggle_calendar_selection(
    vendor_id: int,
    selection_in: schemas.SelectionToggleRequest,
    db: Session = Depends(get_db),
):
    """Toggle one date in a client-held selection and return it sorted.

    Days that are blocked or off are never added; the selection is returned
    unchanged with ``changed`` false.
    """
    _get_vendor_or_404(db, vendor_id)
    target = selection_in.toggle
    calendar = load_month_calendar(db, vendor_id, target.year, target.month)
    selection = DateSelection(selection_in.selected)
    changed = selection.toggle(target, calendar)
    return {
        "selected": selection.dates(),
        "changed": changed,
        "status": calendar.status_of(target),
    }


@router.get("/{vendor_id}/availability", response_model=schemas.AvailabilitySettingsResponse)
def read_availability_settings(vendor_id: int, db: Session = Depends(get_db)):
    _get_vendor_or_404(db, vendor_id)
    row = crud.crud_availability.get_settings(db, vendor_id)
    return {
        "vendor_id": vendor_id,
        "days_off": normalize_days_off(row.days_off if row else None),
        "slots_per_day": row.slots_per_day if row else None,
        "configured": row is not None,
    }


@router.put("/{vendor_id}/availability", response_model=schemas.AvailabilitySettingsResponse)
def update_availability_settings(
    vendor_id: int,
    settings_in: schemas.AvailabilitySettingsUpdate,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
):
    _get_vendor_or_404(db, vendor_id)
    _ensure_owner(ctx, vendor_id)
    days_off = normalize_days_off(settings_in.days_off)
    row = crud.crud_availability.upsert_settings(db, vendor_id, days_off, settings_in.slots_per_day)
    _commit(db, "availability settings")
    redis_cache.invalidate_calendar_cache(vendor_id)
    logger.info("Vendor %s updated days off: %s", vendor_id, [k for k, v in days_off.items() if v])
    return {
        "vendor_id": vendor_id,
        "days_off": days_off,
        "slots_per_day": row.slots_per_day,
        "configured": True,
    }


@router.get("/{vendor_id}/blocked-dates", response_model=schemas.BlockedDatesResponse)
def read_blocked_dates(
    vendor_id: int,
    start: Optional[date] = None,
    end: Optional[date] = None,
    db: Session = Depends(get_db),
):
    _get_vendor_or_404(db, vendor_id)
    dates = crud.crud_availability.list_blocked_dates(db, vendor_id, start, end)
    return {"vendor_id": vendor_id, "dates": dates}


@router.post(
    "/{vendor_id}/blocked-dates",
    response_model=schemas.BlockedDatesResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_blocked_dates(
    vendor_id: int,
    blocked_in: schemas.BlockedDateCreate,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
):
    _get_vendor_or_404(db, vendor_id)
    _ensure_owner(ctx, vendor_id)
    added = crud.crud_availability.add_blocked_dates(db, vendor_id, blocked_in.dates)
    _commit(db, "blocked dates")
    redis_cache.invalidate_calendar_cache(vendor_id)
    logger.info("Vendor %s blocked %d new dates", vendor_id, len(added))
    return {"vendor_id": vendor_id, "dates": crud.crud_availability.list_blocked_dates(db, vendor_id)}


@router.delete("/{vendor_id}/blocked-dates/{day}", status_code=status.HTTP_204_NO_CONTENT)
def delete_blocked_date(
    vendor_id: int,
    day: date,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
):
    _get_vendor_or_404(db, vendor_id)
    _ensure_owner(ctx, vendor_id)
    if not crud.crud_availability.remove_blocked_date(db, vendor_id, day):
        raise NotFoundError("Date is not blocked", {"date": day.isoformat()})
    _commit(db, "blocked dates")
    redis_cache.invalidate_calendar_cache(vendor_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{vendor_id}/bookings", response_model=List[schemas.BookingResponse])
def read_vendor_bookings(
    vendor_id: int,
    start: Optional[date] = None,
    end: Optional[date] = None,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
):
    _get_vendor_or_404(db, vendor_id)
    _ensure_owner(ctx, vendor_id, allow_admin=True)
    return crud.crud_availability.list_bookings(db, vendor_id, start, end)
