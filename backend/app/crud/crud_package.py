from sqlalchemy.orm import Session, selectinload
from typing import List, Optional

from .. import models, schemas


def get_package(db: Session, package_id: int) -> Optional[models.Package]:
    return (
        db.query(models.Package)
        .options(selectinload(models.Package.extras))
        .filter(models.Package.id == package_id)
        .first()
    )


def list_vendor_packages(db: Session, vendor_id: int) -> List[models.Package]:
    return (
        db.query(models.Package)
        .options(selectinload(models.Package.extras))
        .filter(models.Package.vendor_id == vendor_id)
        .order_by(models.Package.created_at.desc(), models.Package.id.desc())
        .all()
    )


def create_package(db: Session, vendor_id: int, package_in: schemas.PackageCreate) -> models.Package:
    db_package = models.Package(
        vendor_id=vendor_id,
        **package_in.model_dump(exclude={"extras"}),
    )
    db_package.extras = [models.PackageExtra(**e.model_dump()) for e in package_in.extras]
    db.add(db_package)
    db.flush()
    return db_package


def update_package(db: Session, db_package: models.Package, package_in: schemas.PackageUpdate) -> models.Package:
    data = package_in.model_dump(exclude_unset=True)
    extras = data.pop("extras", None)
    for key, value in data.items():
        setattr(db_package, key, value)
    if extras is not None:
        # Replace the extras list wholesale (bulk save from the package editor)
        db_package.extras = [models.PackageExtra(**e) for e in extras]
    db.add(db_package)
    return db_package


def delete_package(db: Session, db_package: models.Package) -> None:
    db.delete(db_package)
