import uuid

from sqlalchemy import (
    Column, Text, Boolean, TIMESTAMP, ForeignKey, Enum, Uuid, func, Index, UniqueConstraint
)
from sqlalchemy.orm import relationship

from .base import Base
from .enums import NotificationType, NotificationChannelType


class User(Base):
    """
    Account identity. Owned by the account service; the pipeline only reads it
    to address email notifications.
    """
    __tablename__ = 'users'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(Text, nullable=False, unique=True)
    name = Column(Text)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())

    favorite_teams = relationship("FavoriteTeam", back_populates="user", cascade="all, delete-orphan")
    notification_prefs = relationship("NotificationPreference", back_populates="user", cascade="all, delete-orphan")


class FavoriteTeam(Base):
    """A user's subscription to a team. One row per (user, team)."""
    __tablename__ = 'favorite_team'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    team_id = Column(Uuid, ForeignKey('team.id', ondelete='CASCADE'), nullable=False)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())

    user = relationship("User", back_populates="favorite_teams")
    team = relationship("Team", back_populates="favorites")

    __table_args__ = (
        UniqueConstraint('user_id', 'team_id', name='uq_favorite_team_user_team'),
        Index('idx_favorite_team_team', 'team_id'),
    )


class NotificationPreference(Base):
    """
    Per (user, notification type, channel) switch.

    team_id NULL is the user's global default; a team-scoped row overrides it
    for events involving that team.
    """
    __tablename__ = 'notification_preference'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    team_id = Column(Uuid, ForeignKey('team.id', ondelete='CASCADE'), nullable=True)
    type = Column(Enum(NotificationType, native_enum=False, length=32), nullable=False)
    channel = Column(Enum(NotificationChannelType, native_enum=False, length=16), nullable=False)
    enabled = Column(Boolean, nullable=False, default=True)

    user = relationship("User", back_populates="notification_prefs")

    __table_args__ = (
        UniqueConstraint('user_id', 'team_id', 'type', 'channel', name='uq_notification_preference'),
        Index('idx_notification_preference_lookup', 'type', 'user_id'),
    )
