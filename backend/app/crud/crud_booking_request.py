from sqlalchemy.orm import Session, selectinload
from sqlalchemy import func
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional

from .. import models

# --- BookingRequest CRUD ---


def _with_relations(query):
    return query.options(
        selectinload(models.BookingRequest.dates),
        selectinload(models.BookingRequest.package).selectinload(models.Package.extras),
        selectinload(models.BookingRequest.vendor),
        selectinload(models.BookingRequest.user),
    )


def create_booking_request(
    db: Session,
    *,
    vendor_id: int,
    user_id: int,
    dates: Iterable[date],
    package_id: Optional[int] = None,
    notes: Optional[str] = None,
    requested_changes: Optional[str] = None,
    phone: Optional[str] = None,
    guests: Optional[int] = None,
) -> models.BookingRequest:
    db_request = models.BookingRequest(
        vendor_id=vendor_id,
        user_id=user_id,
        package_id=package_id,
        notes=notes,
        requested_changes=requested_changes,
        phone=phone,
        guests=guests,
        status=models.RequestStatus.PENDING,
        version=1,
    )
    db_request.dates = [models.BookingRequestDate(event_date=d) for d in dates]
    db.add(db_request)
    db.flush()
    return db_request


def get_booking_request(db: Session, request_id: int) -> Optional[models.BookingRequest]:
    return (
        _with_relations(db.query(models.BookingRequest))
        .filter(models.BookingRequest.id == request_id)
        .first()
    )


def get_booking_requests_by_vendor(db: Session, vendor_id: int) -> List[models.BookingRequest]:
    return (
        _with_relations(db.query(models.BookingRequest))
        .filter(models.BookingRequest.vendor_id == vendor_id)
        .order_by(models.BookingRequest.created_at.desc(), models.BookingRequest.id.desc())
        .all()
    )


def get_booking_requests_by_user(db: Session, user_id: int) -> List[models.BookingRequest]:
    return (
        _with_relations(db.query(models.BookingRequest))
        .filter(models.BookingRequest.user_id == user_id)
        .order_by(models.BookingRequest.created_at.desc(), models.BookingRequest.id.desc())
        .all()
    )


def list_all_booking_requests(db: Session, skip: int = 0, limit: int = 200) -> List[models.BookingRequest]:
    return (
        _with_relations(db.query(models.BookingRequest))
        .order_by(models.BookingRequest.created_at.desc(), models.BookingRequest.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def update_request_status(
    db: Session,
    *,
    request_id: int,
    from_status: models.RequestStatus,
    from_version: int,
    to_status: models.RequestStatus,
    values: Optional[Dict] = None,
) -> bool:
    """Compare-and-set the status in one UPDATE statement.

    The row only changes if it still holds ``from_status`` at ``from_version``;
    the version is bumped alongside. Returns False when another writer got
    there first.
    """
    payload = {
        models.BookingRequest.status: to_status,
        models.BookingRequest.version: models.BookingRequest.version + 1,
        models.BookingRequest.updated_at: datetime.utcnow(),
    }
    for key, value in (values or {}).items():
        payload[getattr(models.BookingRequest, key)] = value
    updated = (
        db.query(models.BookingRequest)
        .filter(
            models.BookingRequest.id == request_id,
            models.BookingRequest.status == from_status,
            models.BookingRequest.version == from_version,
        )
        .update(payload, synchronize_session=False)
    )
    return updated == 1


def find_stale_request_ids(
    db: Session,
    statuses: Iterable[models.RequestStatus],
    older_than: datetime,
) -> List[int]:
    rows = (
        db.query(models.BookingRequest.id)
        .filter(models.BookingRequest.status.in_(list(statuses)))
        .filter(
            func.coalesce(models.BookingRequest.updated_at, models.BookingRequest.created_at)
            < older_than
        )
        .order_by(models.BookingRequest.id)
        .all()
    )
    return [r.id for r in rows]


def count_by_status(db: Session) -> Dict[str, int]:
    rows = (
        db.query(models.BookingRequest.status, func.count(models.BookingRequest.id))
        .group_by(models.BookingRequest.status)
        .all()
    )
    return {status.value: int(count) for status, count in rows}
