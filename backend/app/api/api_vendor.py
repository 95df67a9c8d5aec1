from fastapi import APIRouter, Depends, Header, Query, Response, status
from fastapi.responses import ORJSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from .. import crud, models, schemas
from ..core.session import SessionContext
from ..services import vendor_stats
from ..services.package_pricing import estimate_package
from ..utils.errors import (
    AuthorizationFailure,
    NotFoundError,
    RemoteFailure,
    ValidationError,
)
from .dependencies import (
    get_db,
    get_optional_session_context,
    get_session_context,
    require_vendor,
)

router = APIRouter(tags=["Vendors"], default_response_class=ORJSONResponse)

logger = logging.getLogger(__name__)


def _get_vendor_or_404(db: Session, vendor_id: int) -> models.Vendor:
    vendor = crud.crud_vendor.get_vendor(db, vendor_id)
    if vendor is None:
        raise NotFoundError("Vendor not found", {"vendor_id": "Not found"})
    return vendor


def _ensure_owner(ctx: SessionContext, vendor: models.Vendor) -> None:
    if ctx.vendor_id != vendor.id:
        logger.warning("User %s is not the owner of vendor %s", ctx.user_id, vendor.id)
        raise AuthorizationFailure("Only the vendor can change this listing", {"vendor_id": "Forbidden"})


def _get_package_or_404(db: Session, vendor_id: int, package_id: int) -> models.Package:
    package = crud.crud_package.get_package(db, package_id)
    if package is None or package.vendor_id != vendor_id:
        raise NotFoundError("Package not found", {"package_id": "Not found"})
    return package


def _commit(db: Session, what: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Could not save %s: %s", what, exc)
        raise RemoteFailure(f"Could not save {what}; please retry") from exc


# ─── Vendors ─────────────────────────────────────────────────────────────────
@router.get("/", response_model=List[schemas.VendorResponse])
def list_vendors(
    category: Optional[str] = None,
    location: Optional[str] = None,
    verified_only: bool = True,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
):
    return crud.crud_vendor.list_vendors(
        db,
        category=category,
        location=location,
        verified_only=verified_only,
        skip=skip,
        limit=limit,
    )


@router.post("/", response_model=schemas.VendorResponse, status_code=status.HTTP_201_CREATED)
def create_vendor_profile(
    vendor_in: schemas.VendorCreate,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
):
    if ctx.vendor_id is not None:
        raise ValidationError("You already have a vendor listing", {"vendor": "Exists"})
    vendor = crud.crud_vendor.create_vendor(db, vendor_in, ctx.user_id)
    user = crud.user.get_user(db, ctx.user_id)
    if user is not None and user.role == models.UserRole.VIEWER:
        user.role = models.UserRole.VENDOR
    _commit(db, "vendor listing")
    db.refresh(vendor)
    logger.info("User %s created vendor %s", ctx.user_id, vendor.id)
    return vendor


@router.get("/me", response_model=schemas.VendorDetailResponse)
def read_my_vendor(
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(require_vendor),
):
    return read_vendor(ctx.vendor_id, db)


@router.get("/{vendor_id}", response_model=schemas.VendorDetailResponse)
def read_vendor(vendor_id: int, db: Session = Depends(get_db)):
    vendor = _get_vendor_or_404(db, vendor_id)
    stats = vendor_stats.rating_stats(db, vendor_id)
    data = schemas.VendorResponse.model_validate(vendor).model_dump()
    return {
        **data,
        "average_rating": stats["average_rating"],
        "total_ratings": stats["total_ratings"],
        "view_count": crud.crud_view.count_views(db, vendor_id),
        "packages": [schemas.PackageResponse.model_validate(p) for p in vendor.packages],
    }


@router.put("/{vendor_id}", response_model=schemas.VendorResponse)
def update_vendor_profile(
    vendor_id: int,
    vendor_in: schemas.VendorUpdate,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
):
    vendor = _get_vendor_or_404(db, vendor_id)
    _ensure_owner(ctx, vendor)
    crud.crud_vendor.update_vendor(db, vendor, vendor_in)
    _commit(db, "vendor listing")
    db.refresh(vendor)
    return vendor


# ─── Packages ────────────────────────────────────────────────────────────────
@router.get("/{vendor_id}/packages", response_model=List[schemas.PackageResponse])
def list_packages(vendor_id: int, db: Session = Depends(get_db)):
    _get_vendor_or_404(db, vendor_id)
    return crud.crud_package.list_vendor_packages(db, vendor_id)


@router.post(
    "/{vendor_id}/packages",
    response_model=schemas.PackageResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_package(
    vendor_id: int,
    package_in: schemas.PackageCreate,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
):
    vendor = _get_vendor_or_404(db, vendor_id)
    _ensure_owner(ctx, vendor)
    package = crud.crud_package.create_package(db, vendor_id, package_in)
    _commit(db, "package")
    return crud.crud_package.get_package(db, package.id)


@router.put("/{vendor_id}/packages/{package_id}", response_model=schemas.PackageResponse)
def update_package(
    vendor_id: int,
    package_id: int,
    package_in: schemas.PackageUpdate,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
):
    vendor = _get_vendor_or_404(db, vendor_id)
    _ensure_owner(ctx, vendor)
    package = _get_package_or_404(db, vendor_id, package_id)
    crud.crud_package.update_package(db, package, package_in)
    _commit(db, "package")
    return crud.crud_package.get_package(db, package_id)


@router.delete("/{vendor_id}/packages/{package_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_package(
    vendor_id: int,
    package_id: int,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
):
    vendor = _get_vendor_or_404(db, vendor_id)
    _ensure_owner(ctx, vendor)
    package = _get_package_or_404(db, vendor_id, package_id)
    crud.crud_package.delete_package(db, package)
    _commit(db, "package")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{vendor_id}/packages/{package_id}/estimate",
    response_model=schemas.PackageEstimateResponse,
)
def estimate_package_price(
    vendor_id: int,
    package_id: int,
    estimate_in: schemas.PackageEstimateRequest,
    db: Session = Depends(get_db),
):
    package = _get_package_or_404(db, vendor_id, package_id)
    estimate = estimate_package(
        package,
        persons=estimate_in.persons,
        extras=[e.model_dump() for e in estimate_in.extras],
    )
    return estimate.to_dict()


# ─── Ratings ─────────────────────────────────────────────────────────────────
def _rating_row(rating: models.VendorRating) -> dict:
    data = schemas.RatingResponse.model_validate(rating).model_dump()
    if rating.user is not None:
        data["user_name"] = rating.user.full_name or rating.user.email
    return data


@router.get("/{vendor_id}/ratings", response_model=schemas.RatingPage)
def list_ratings(
    vendor_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    _get_vendor_or_404(db, vendor_id)
    rows, total = crud.crud_rating.list_ratings(db, vendor_id, skip=(page - 1) * limit, limit=limit)
    return {
        "ratings": [_rating_row(r) for r in rows],
        "total": total,
        "page": page,
        "limit": limit,
        "has_more": page * limit < total,
    }


@router.get("/{vendor_id}/ratings/stats", response_model=schemas.RatingStats)
def read_rating_stats(vendor_id: int, db: Session = Depends(get_db)):
    _get_vendor_or_404(db, vendor_id)
    return vendor_stats.rating_stats(db, vendor_id)


@router.get("/{vendor_id}/ratings/me", response_model=Optional[schemas.RatingResponse])
def read_my_rating(
    vendor_id: int,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
):
    rating = crud.crud_rating.get_user_rating(db, vendor_id, ctx.user_id)
    return _rating_row(rating) if rating else None


@router.post("/{vendor_id}/ratings", response_model=schemas.RatingResponse)
def rate_vendor(
    vendor_id: int,
    rating_in: schemas.RatingCreate,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
):
    """Create the caller's rating, or replace it if they rated before."""
    vendor = _get_vendor_or_404(db, vendor_id)
    if vendor.user_id == ctx.user_id:
        raise ValidationError("You cannot rate your own listing", {"vendor_id": "Own listing"})
    rating = crud.crud_rating.upsert_rating(db, vendor_id, ctx.user_id, rating_in)
    _commit(db, "rating")
    db.refresh(rating)
    return _rating_row(rating)


# ─── Views ───────────────────────────────────────────────────────────────────
@router.post("/{vendor_id}/views", response_model=schemas.ViewTracked)
def track_vendor_view(
    vendor_id: int,
    user_agent: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
    ctx: Optional[SessionContext] = Depends(get_optional_session_context),
):
    vendor = _get_vendor_or_404(db, vendor_id)
    viewer_id = ctx.user_id if ctx else None
    if viewer_id is not None and viewer_id == vendor.user_id:
        return {"vendor_id": vendor_id, "recorded": False}
    recorded = vendor_stats.track_view(db, vendor_id, viewer_id, user_agent)
    if recorded:
        _commit(db, "view")
    return {"vendor_id": vendor_id, "recorded": recorded}


@router.get("/{vendor_id}/views/stats", response_model=schemas.ViewStats)
def read_view_stats(
    vendor_id: int,
    db: Session = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
):
    vendor = _get_vendor_or_404(db, vendor_id)
    if not ctx.is_admin:
        _ensure_owner(ctx, vendor)
    return vendor_stats.view_stats(db, vendor_id)
