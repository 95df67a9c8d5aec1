from sqlalchemy.orm import Session
from datetime import date
from typing import Iterable, List, Optional

from .. import models


def get_settings(db: Session, vendor_id: int) -> Optional[models.AvailabilitySettings]:
    return (
        db.query(models.AvailabilitySettings)
        .filter(models.AvailabilitySettings.vendor_id == vendor_id)
        .first()
    )


def upsert_settings(
    db: Session,
    vendor_id: int,
    days_off: dict,
    slots_per_day: Optional[int],
) -> models.AvailabilitySettings:
    db_settings = get_settings(db, vendor_id)
    if db_settings is None:
        db_settings = models.AvailabilitySettings(vendor_id=vendor_id)
    db_settings.days_off = dict(days_off)
    db_settings.slots_per_day = slots_per_day
    db.add(db_settings)
    return db_settings


def list_blocked_dates(
    db: Session,
    vendor_id: int,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> List[date]:
    query = db.query(models.BlockedDate.date).filter(models.BlockedDate.vendor_id == vendor_id)
    if start is not None:
        query = query.filter(models.BlockedDate.date >= start)
    if end is not None:
        query = query.filter(models.BlockedDate.date <= end)
    return [row.date for row in query.order_by(models.BlockedDate.date).all()]


def add_blocked_dates(db: Session, vendor_id: int, dates: Iterable[date]) -> List[date]:
    """Insert the dates not yet blocked; return the ones added."""
    existing = set(list_blocked_dates(db, vendor_id))
    added = []
    for d in sorted(set(dates)):
        if d in existing:
            continue
        db.add(models.BlockedDate(vendor_id=vendor_id, date=d))
        added.append(d)
    return added


def remove_blocked_date(db: Session, vendor_id: int, day: date) -> bool:
    deleted = (
        db.query(models.BlockedDate)
        .filter(models.BlockedDate.vendor_id == vendor_id, models.BlockedDate.date == day)
        .delete(synchronize_session=False)
    )
    return deleted > 0


def list_bookings(
    db: Session,
    vendor_id: int,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> List[models.Booking]:
    query = db.query(models.Booking).filter(models.Booking.vendor_id == vendor_id)
    if start is not None:
        query = query.filter(models.Booking.event_date >= start)
    if end is not None:
        query = query.filter(models.Booking.event_date <= end)
    return query.order_by(models.Booking.event_date, models.Booking.id).all()


def create_bookings_for_request(db: Session, request: models.BookingRequest) -> List[models.Booking]:
    existing = {
        row.event_date
        for row in db.query(models.Booking.event_date)
        .filter(models.Booking.request_id == request.id)
        .all()
    }
    created = []
    for d in request.dates:
        if d.event_date in existing:
            continue
        booking = models.Booking(
            vendor_id=request.vendor_id,
            request_id=request.id,
            user_id=request.user_id,
            event_date=d.event_date,
            notes=request.notes,
        )
        db.add(booking)
        created.append(booking)
    return created
