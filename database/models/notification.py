import uuid

from sqlalchemy import (
    Column, Text, TIMESTAMP, ForeignKey, Boolean, Integer, Enum, Uuid, func, Index
)
from sqlalchemy.orm import relationship

from .base import Base, JsonType
from .enums import NotificationType, NotificationChannelType


class Notification(Base):
    """
    A materialized, per-user, per-channel instance of a match event.

    Created once per (user, match, type, channel) by the fan-out engine; the
    dedup_key column enforces that. EMAIL rows stay pending while sent_at is
    NULL and are retried by the delivery worker on every drain. IN_APP rows
    need no delivery: existing with read=False is their delivered state.
    """
    __tablename__ = 'notification'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    match_id = Column(Uuid, ForeignKey('match.id', ondelete='SET NULL'), nullable=True)

    type = Column(Enum(NotificationType, native_enum=False, length=32), nullable=False)
    channel = Column(Enum(NotificationChannelType, native_enum=False, length=16), nullable=False)
    title = Column(Text, nullable=False)
    body = Column(Text, nullable=False)
    data = Column(JsonType, nullable=False, default=dict)

    # Hash of user + match + type + channel
    dedup_key = Column(Text, nullable=False, unique=True)

    read = Column(Boolean, nullable=False, default=False)
    sent_at = Column(TIMESTAMP(timezone=True))
    attempt_count = Column(Integer, nullable=False, default=0)
    last_error = Column(Text)

    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())

    user = relationship("User")

    __table_args__ = (
        Index('idx_notification_user_created', 'user_id', 'created_at'),
        Index('idx_notification_pending', 'channel', 'sent_at'),
    )

    @property
    def is_pending(self) -> bool:
        return self.channel == NotificationChannelType.EMAIL and self.sent_at is None
