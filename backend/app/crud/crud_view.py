from sqlalchemy.orm import Session
from sqlalchemy import func
from datetime import datetime
from typing import Optional

from .. import models


def record_view(
    db: Session,
    vendor_id: int,
    viewer_id: Optional[int],
    user_agent: Optional[str],
    viewed_at: datetime,
) -> models.VendorView:
    view = models.VendorView(
        vendor_id=vendor_id,
        viewer_id=viewer_id,
        user_agent=user_agent,
        viewed_at=viewed_at,
    )
    db.add(view)
    return view


def has_viewed_since(db: Session, vendor_id: int, viewer_id: int, since: datetime) -> bool:
    return (
        db.query(models.VendorView.id)
        .filter(
            models.VendorView.vendor_id == vendor_id,
            models.VendorView.viewer_id == viewer_id,
            models.VendorView.viewed_at >= since,
        )
        .first()
        is not None
    )


def count_views(db: Session, vendor_id: int, since: Optional[datetime] = None) -> int:
    query = db.query(func.count(models.VendorView.id)).filter(models.VendorView.vendor_id == vendor_id)
    if since is not None:
        query = query.filter(models.VendorView.viewed_at >= since)
    return int(query.scalar() or 0)


def count_unique_viewers(db: Session, vendor_id: int) -> int:
    return int(
        db.query(func.count(func.distinct(models.VendorView.viewer_id)))
        .filter(models.VendorView.vendor_id == vendor_id, models.VendorView.viewer_id.isnot(None))
        .scalar()
        or 0
    )
