import logging
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from sqlalchemy import select

from database.models import (
    FavoriteTeam, NotificationPreference, User, NotificationType, NotificationChannelType
)
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class PreferenceRepository(BaseRepository):
    """Read side of favorites/preferences for fan-out, plus the preference writes."""

    def followed_teams_by_user(self, team_ids: Iterable[Any]) -> Dict[Any, Set[Any]]:
        """Users favoriting any of team_ids, mapped to which of those teams they follow."""
        ids = [t for t in team_ids if t is not None]
        if not ids:
            return {}
        stmt = select(FavoriteTeam.user_id, FavoriteTeam.team_id).where(
            FavoriteTeam.team_id.in_(ids)
        )
        followed: Dict[Any, Set[Any]] = {}
        for user_id, team_id in self.db.execute(stmt).all():
            followed.setdefault(user_id, set()).add(team_id)
        return followed

    def get_preference_rows(
        self,
        user_ids: Iterable[Any],
        notification_type: NotificationType
    ) -> List[NotificationPreference]:
        ids = list(user_ids)
        if not ids:
            return []
        stmt = select(NotificationPreference).where(
            NotificationPreference.user_id.in_(ids),
            NotificationPreference.type == notification_type
        )
        return self.db.execute(stmt).scalars().all()

    def get_users(self, user_ids: Iterable[Any]) -> Dict[Any, User]:
        ids = list(user_ids)
        if not ids:
            return {}
        stmt = select(User).where(User.id.in_(ids))
        return {user.id: user for user in self.db.execute(stmt).scalars().all()}

    def get_preferences(self, user_id: Any) -> Dict[str, Dict[str, bool]]:
        """Global (team-less) preferences grouped as {type: {channel: enabled}}."""
        stmt = select(NotificationPreference).where(
            NotificationPreference.user_id == user_id,
            NotificationPreference.team_id.is_(None)
        )
        grouped: Dict[str, Dict[str, bool]] = {}
        for pref in self.db.execute(stmt).scalars().all():
            grouped.setdefault(pref.type.value, {})[pref.channel.value] = pref.enabled
        return grouped

    def set_preference(
        self,
        user_id: Any,
        notification_type: NotificationType,
        channel: NotificationChannelType,
        enabled: bool,
        team_id: Optional[Any] = None
    ) -> NotificationPreference:
        # NULL team_id does not collide in a unique index, so look it up explicitly
        stmt = select(NotificationPreference).where(
            NotificationPreference.user_id == user_id,
            NotificationPreference.type == notification_type,
            NotificationPreference.channel == channel,
            NotificationPreference.team_id.is_(None) if team_id is None
            else NotificationPreference.team_id == team_id
        )
        pref = self.db.execute(stmt).scalar_one_or_none()

        if pref is None:
            pref = NotificationPreference(
                user_id=user_id,
                team_id=team_id,
                type=notification_type,
                channel=channel,
                enabled=enabled,
            )
            self.db.add(pref)
        else:
            pref.enabled = enabled

        self.db.flush()
        return pref

    def set_preferences(
        self,
        user_id: Any,
        preferences: Iterable[Tuple[NotificationType, NotificationChannelType, bool]]
    ) -> int:
        """Bulk update of global preferences. Commit/rollback is the caller's unit of work."""
        count = 0
        for notification_type, channel, enabled in preferences:
            self.set_preference(user_id, notification_type, channel, enabled)
            count += 1
        return count
