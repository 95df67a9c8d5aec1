# backend/app/api/auth.py

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from jose import jwt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from datetime import datetime, timedelta
from typing import Optional
import logging
import uuid

from .. import crud
from ..core.config import settings
from ..core.session import SessionContext
from ..database import get_db
from ..schemas.user import Token, UserCreate, UserResponse
from ..utils.auth import verify_password
from ..utils.errors import AuthorizationFailure
from ..utils.redis_cache import revoke_token
from .dependencies import get_session_context

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire, "jti": to_encode.get("jti") or uuid.uuid4().hex})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def _issue_token(user) -> Token:
    minutes = settings.ACCESS_TOKEN_EXPIRE_MINUTES
    access_token = create_access_token(
        {"sub": user.email, "uid": user.id, "role": user.role.value},
        expires_delta=timedelta(minutes=minutes),
    )
    return Token(
        access_token=access_token,
        token_type="bearer",
        expires_in=minutes * 60,
        user=UserResponse.model_validate(user),
    )


@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
def register(user_data: UserCreate, db: Session = Depends(get_db)):
    if crud.user.get_user_by_email(db, user_data.email):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="That email already has an account. Sign in instead.",
        )
    try:
        db_user = crud.user.create_user(db, user_data)
        db.commit()
        db.refresh(db_user)
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="That email already has an account. Sign in instead.",
        )
    logger.info("Registered user %s as %s", db_user.id, db_user.role.value)
    return _issue_token(db_user)


@router.post("/login", response_model=Token)
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    user = crud.user.get_user_by_email(db, form_data.username)
    if not user or not verify_password(form_data.password, user.password):
        logger.info("Failed login for %s", form_data.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise AuthorizationFailure("This account has been suspended.", {"account": "Suspended"})
    return _issue_token(user)


@router.get("/me", response_model=UserResponse)
def read_current_user(
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
):
    return crud.user.get_user(db, ctx.user_id)


@router.post("/logout")
def logout(ctx: SessionContext = Depends(get_session_context)):
    """Revoke the bearer token for the rest of its lifetime."""
    if ctx.token_id:
        revoke_token(ctx.token_id, settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60)
    logger.info("User %s logged out", ctx.user_id)
    return {"message": "logged out"}
