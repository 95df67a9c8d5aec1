from sqlalchemy.orm import Session
from typing import List, Optional

from .. import models, schemas
from ..core.config import settings
from ..utils.auth import get_password_hash, normalize_email


class CRUDUser:
    def get_user(self, db: Session, user_id: int) -> Optional[models.User]:
        return db.query(models.User).filter(models.User.id == user_id).first()

    def get_user_by_email(self, db: Session, email: str) -> Optional[models.User]:
        return (
            db.query(models.User)
            .filter(models.User.email == normalize_email(email))
            .first()
        )

    def create_user(self, db: Session, user: schemas.UserCreate) -> models.User:
        email = normalize_email(user.email)
        role = user.role
        if email in settings.admin_emails:
            role = models.UserRole.ADMIN
        elif role == models.UserRole.ADMIN:
            role = models.UserRole.VIEWER
        db_user = models.User(
            email=email,
            password=get_password_hash(user.password),
            full_name=user.full_name,
            phone=user.phone,
            role=role,
        )
        db.add(db_user)
        db.flush()
        return db_user

    def list_users(self, db: Session, skip: int = 0, limit: int = 100) -> List[models.User]:
        return (
            db.query(models.User)
            .order_by(models.User.created_at.desc(), models.User.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def set_active(self, db: Session, db_user: models.User, active: bool) -> models.User:
        db_user.is_active = active
        db.add(db_user)
        return db_user


user = CRUDUser() # Create an instance for easy import
