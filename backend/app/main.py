from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import ORJSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
import logging

from .core.config import settings
from .core.observability import setup_logging
from .database import Base, engine, get_db_session
from . import models  # noqa: F401  registers tables on Base.metadata
from .api import (
    auth,
    api_admin,
    api_availability,
    api_booking_request,
    api_onboarding,
    api_vendor,
)
from .utils.errors import BookingError, error_payload
from .utils.redis_cache import close_redis_client
from .utils.status_logger import register_status_listeners

setup_logging()
logger = logging.getLogger(__name__)

# Create tables that do not yet exist
Base.metadata.create_all(bind=engine)

app = FastAPI(title="Vendor Bookings API", default_response_class=ORJSONResponse)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials="*" not in settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(GZipMiddleware, minimum_size=1024)
logger.info("CORS origins set to: %s", settings.CORS_ORIGINS)


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    log = logger.error if exc.retryable else logger.warning
    log(
        "%s at %s: %s %s",
        exc.code,
        request.url.path,
        exc.message,
        exc.field_errors,
    )
    return ORJSONResponse(status_code=exc.status_code, content=error_payload(exc))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Return validation errors in the same envelope as service errors."""
    errors = exc.errors()
    logger.warning("Validation error at %s: %s", request.url.path, errors)
    field_errors = {}
    for err in errors:
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        field_errors[".".join(loc) or "request"] = err.get("msg", "Invalid value")
    return ORJSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "detail": {
                "message": "Invalid request",
                "field_errors": field_errors,
                "code": "validation_error",
                "retryable": False,
            }
        },
    )


api_prefix = settings.API_V1_STR  # usually something like "/api/v1"

app.include_router(auth.router, prefix=f"{api_prefix}/auth", tags=["auth"])
app.include_router(
    api_booking_request.router,
    prefix=f"{api_prefix}/booking-requests",
    tags=["booking-requests"],
)
app.include_router(api_vendor.router, prefix=f"{api_prefix}/vendors", tags=["vendors"])
app.include_router(
    api_availability.router,
    prefix=f"{api_prefix}/vendors",
    tags=["availability"],
)
app.include_router(
    api_onboarding.router,
    prefix=f"{api_prefix}/onboarding",
    tags=["onboarding"],
)
app.include_router(api_admin.router, prefix=api_prefix, tags=["admin"])


@app.get("/healthz", tags=["health"])
def healthz():
    """Readiness: the database answers a trivial query."""
    try:
        with get_db_session() as db:
            db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.error("Health check failed: %s", exc)
        return ORJSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unavailable"},
            headers={"Cache-Control": "no-store"},
        )
    return ORJSONResponse({"status": "ok"}, headers={"Cache-Control": "no-store"})


@app.on_event("startup")
def attach_status_listeners() -> None:
    register_status_listeners()


@app.on_event("shutdown")
def shutdown_redis_client() -> None:
    """Close Redis connections when the application shuts down."""
    logger.info("Closing Redis client")
    close_redis_client()
