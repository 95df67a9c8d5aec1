import logging
from datetime import datetime, time, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from .. import crud

logger = logging.getLogger(__name__)

RECENT_VIEW_DAYS = 7


def rating_stats(db: Session, vendor_id: int) -> dict:
    """Average (2 dp, 0 when unrated), total and 1..5 distribution."""
    counts = crud.crud_rating.rating_distribution(db, vendor_id)
    distribution = {star: counts.get(star, 0) for star in range(1, 6)}
    total = sum(distribution.values())
    average = 0.0
    if total:
        average = round(sum(star * n for star, n in distribution.items()) / total, 2)
    return {
        "vendor_id": vendor_id,
        "average_rating": average,
        "total_ratings": total,
        "distribution": distribution,
    }


def track_view(
    db: Session,
    vendor_id: int,
    viewer_id: Optional[int],
    user_agent: Optional[str] = None,
    now: Optional[datetime] = None,
) -> bool:
    """Record a profile view; signed-in viewers count once per calendar day.

    Returns True when a row was written.
    """
    now = now or datetime.utcnow()
    if viewer_id is not None:
        day_start = datetime.combine(now.date(), time.min)
        if crud.crud_view.has_viewed_since(db, vendor_id, viewer_id, day_start):
            return False
    crud.crud_view.record_view(db, vendor_id, viewer_id, user_agent, now)
    return True


def view_stats(db: Session, vendor_id: int, now: Optional[datetime] = None) -> dict:
    now = now or datetime.utcnow()
    return {
        "vendor_id": vendor_id,
        "total_views": crud.crud_view.count_views(db, vendor_id),
        "unique_views": crud.crud_view.count_unique_viewers(db, vendor_id),
        "recent_views": crud.crud_view.count_views(
            db, vendor_id, since=now - timedelta(days=RECENT_VIEW_DAYS)
        ),
    }
