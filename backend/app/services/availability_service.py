import logging
from typing import Optional

from sqlalchemy.orm import Session

from .. import crud, models
from ..utils import redis_cache
from .availability_calendar import (
    MonthCalendar,
    build_month_calendar,
    month_bounds,
    normalize_days_off,
)

logger = logging.getLogger(__name__)


def vendor_days_off(db: Session, vendor_id: int) -> dict:
    settings_row: Optional[models.AvailabilitySettings] = crud.crud_availability.get_settings(db, vendor_id)
    return normalize_days_off(settings_row.days_off if settings_row else None)


def compute_month_calendar(db: Session, vendor_id: int, year: int, month: int) -> MonthCalendar:
    start, end = month_bounds(year, month)
    blocked = crud.crud_availability.list_blocked_dates(db, vendor_id, start, end)
    bookings = crud.crud_availability.list_bookings(db, vendor_id, start, end)
    return build_month_calendar(
        year,
        month,
        days_off=vendor_days_off(db, vendor_id),
        blocked_dates=blocked,
        booking_dates=[b.event_date for b in bookings],
    )


def load_month_calendar(db: Session, vendor_id: int, year: int, month: int) -> MonthCalendar:
    """Return the vendor's month, served from Redis when cached."""
    cached = redis_cache.get_cached_calendar(vendor_id, year, month)
    if cached:
        try:
            return MonthCalendar.from_dict(cached)
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning(
                "Discarding malformed cached calendar vendor=%s %04d-%02d: %s",
                vendor_id,
                year,
                month,
                exc,
            )
    calendar = compute_month_calendar(db, vendor_id, year, month)
    redis_cache.cache_calendar(calendar.to_dict(), vendor_id, year, month)
    return calendar
