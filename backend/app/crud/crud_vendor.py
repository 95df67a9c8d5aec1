from sqlalchemy.orm import Session, selectinload
from typing import List, Optional

from .. import models, schemas


def get_vendor(db: Session, vendor_id: int) -> Optional[models.Vendor]:
    return (
        db.query(models.Vendor)
        .options(selectinload(models.Vendor.packages).selectinload(models.Package.extras))
        .filter(models.Vendor.id == vendor_id)
        .first()
    )


def get_vendor_by_user(db: Session, user_id: int) -> Optional[models.Vendor]:
    return db.query(models.Vendor).filter(models.Vendor.user_id == user_id).first()


def list_vendors(
    db: Session,
    *,
    category: Optional[str] = None,
    location: Optional[str] = None,
    verified_only: bool = True,
    skip: int = 0,
    limit: int = 50,
) -> List[models.Vendor]:
    query = db.query(models.Vendor)
    if verified_only:
        query = query.filter(models.Vendor.is_verified.is_(True))
    else:
        query = query.filter(models.Vendor.status != models.VendorStatus.SUSPENDED)
    if category:
        query = query.filter(models.Vendor.category == category)
    if location:
        query = query.filter(models.Vendor.location == location)
    return (
        query.order_by(models.Vendor.created_at.desc(), models.Vendor.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def create_vendor(db: Session, vendor_in: schemas.VendorCreate, user_id: int) -> models.Vendor:
    db_vendor = models.Vendor(**vendor_in.model_dump(), user_id=user_id)
    db.add(db_vendor)
    db.flush()
    return db_vendor


def update_vendor(db: Session, db_vendor: models.Vendor, vendor_in: schemas.VendorUpdate) -> models.Vendor:
    for key, value in vendor_in.model_dump(exclude_unset=True).items():
        setattr(db_vendor, key, value)
    db.add(db_vendor)
    return db_vendor


def set_vendor_status(
    db: Session,
    db_vendor: models.Vendor,
    status: models.VendorStatus,
    reason: Optional[str] = None,
) -> models.Vendor:
    db_vendor.status = status
    db_vendor.is_verified = status == models.VendorStatus.VERIFIED
    db_vendor.rejection_reason = reason if status == models.VendorStatus.REJECTED else None
    db.add(db_vendor)
    return db_vendor
