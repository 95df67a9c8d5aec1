from sqlalchemy import Boolean, Column, ForeignKey, Index, Integer, Text

from .base import BaseModel


class Message(BaseModel):
    """In-app notification addressed from one user to another."""

    __tablename__ = "messages"
    __table_args__ = (
        Index("ix_messages_receiver_unread", "receiver_id", "is_read"),
    )

    id                 = Column(Integer, primary_key=True, index=True)
    sender_id          = Column(Integer, ForeignKey("users.id"), nullable=False)
    receiver_id        = Column(Integer, ForeignKey("users.id"), nullable=False)
    booking_request_id = Column(Integer, ForeignKey("booking_requests.id", ondelete="CASCADE"), nullable=True, index=True)
    content            = Column(Text, nullable=False)
    is_read            = Column(Boolean, default=False, nullable=False)
