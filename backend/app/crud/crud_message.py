from typing import List, Optional

from sqlalchemy.orm import Session

from .. import models


def create_message(
    db: Session,
    *,
    sender_id: int,
    receiver_id: int,
    content: str,
    booking_request_id: Optional[int] = None,
) -> models.Message:
    db_msg = models.Message(
        sender_id=sender_id,
        receiver_id=receiver_id,
        booking_request_id=booking_request_id,
        content=content,
        is_read=False,
    )
    db.add(db_msg)
    return db_msg


def list_unread(db: Session, receiver_id: int) -> List[models.Message]:
    return (
        db.query(models.Message)
        .filter(models.Message.receiver_id == receiver_id, models.Message.is_read.is_(False))
        .order_by(models.Message.created_at.desc(), models.Message.id.desc())
        .all()
    )


def mark_read_containing(
    db: Session,
    *,
    receiver_id: int,
    phrase: str,
    booking_request_id: Optional[int] = None,
) -> int:
    """Mark unread messages whose content contains ``phrase`` as read."""
    query = db.query(models.Message).filter(
        models.Message.receiver_id == receiver_id,
        models.Message.is_read.is_(False),
        models.Message.content.contains(phrase, autoescape=True),
    )
    if booking_request_id is not None:
        query = query.filter(models.Message.booking_request_id == booking_request_id)
    return query.update({models.Message.is_read: True}, synchronize_session=False)
