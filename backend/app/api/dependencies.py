from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from jose import JWTError, jwt
from typing import Optional

from .. import crud
from ..core.config import settings
from ..core.session import SessionContext
from ..database import get_db
from ..utils.errors import AuthorizationFailure
from ..utils.redis_cache import is_token_revoked

oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_V1_STR}/auth/login", auto_error=False
)

__all__ = [
    "get_db",
    "get_session_context",
    "get_optional_session_context",
    "require_vendor",
    "require_admin",
]


def _credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def _context_from_token(token: Optional[str], db: Session) -> SessionContext:
    if not token:
        raise _credentials_exception()
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise _credentials_exception()
    email: Optional[str] = payload.get("sub")
    token_id: Optional[str] = payload.get("jti")
    if email is None or is_token_revoked(token_id):
        raise _credentials_exception()
    user = crud.user.get_user_by_email(db, email)
    if user is None:
        raise _credentials_exception()
    if not user.is_active:
        raise AuthorizationFailure("This account has been suspended.", {"account": "Suspended"})
    vendor = crud.crud_vendor.get_vendor_by_user(db, user.id)
    return SessionContext(
        user_id=user.id,
        email=user.email,
        role=user.role,
        vendor_id=vendor.id if vendor else None,
        token_id=token_id,
    )


def get_session_context(
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> SessionContext:
    return _context_from_token(token, db)


def get_optional_session_context(
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> Optional[SessionContext]:
    """Like :func:`get_session_context` but anonymous callers get None."""
    if not token:
        return None
    return _context_from_token(token, db)


def require_vendor(ctx: SessionContext = Depends(get_session_context)) -> SessionContext:
    if ctx.vendor_id is None:
        raise AuthorizationFailure(
            "Vendor profile does not exist. Please create one.",
            {"vendor": "Required"},
        )
    return ctx


def require_admin(ctx: SessionContext = Depends(get_session_context)) -> SessionContext:
    if not ctx.is_admin:
        raise AuthorizationFailure("Admin access required.", {"role": "Admin required"})
    return ctx
