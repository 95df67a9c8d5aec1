from sqlalchemy.orm import Session, selectinload
from sqlalchemy import func
from typing import Dict, List, Optional, Tuple

from .. import models, schemas


def get_user_rating(db: Session, vendor_id: int, user_id: int) -> Optional[models.VendorRating]:
    return (
        db.query(models.VendorRating)
        .filter(models.VendorRating.vendor_id == vendor_id, models.VendorRating.user_id == user_id)
        .first()
    )


def upsert_rating(
    db: Session,
    vendor_id: int,
    user_id: int,
    rating_in: schemas.RatingCreate,
) -> models.VendorRating:
    db_rating = get_user_rating(db, vendor_id, user_id)
    if db_rating is None:
        db_rating = models.VendorRating(vendor_id=vendor_id, user_id=user_id)
    db_rating.rating = rating_in.rating
    db_rating.review = rating_in.review
    db.add(db_rating)
    return db_rating


def list_ratings(
    db: Session, vendor_id: int, skip: int = 0, limit: int = 10
) -> Tuple[List[models.VendorRating], int]:
    query = db.query(models.VendorRating).filter(models.VendorRating.vendor_id == vendor_id)
    total = query.count()
    rows = (
        query.options(selectinload(models.VendorRating.user))
        .order_by(models.VendorRating.created_at.desc(), models.VendorRating.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )
    return rows, total


def rating_distribution(db: Session, vendor_id: int) -> Dict[int, int]:
    rows = (
        db.query(models.VendorRating.rating, func.count(models.VendorRating.id))
        .filter(models.VendorRating.vendor_id == vendor_id)
        .group_by(models.VendorRating.rating)
        .all()
    )
    return {int(rating): int(count) for rating, count in rows}
