"""
Notification Fan-out Engine.

Turns one DomainEvent into per-user, per-channel Notification rows:

    audience  = distinct users favoriting any team in event.team_ids
    channels  = configured channels the user has enabled for event.type
    rows      = one per (user, channel) whose dedup key does not exist yet

Nothing is sent here; EMAIL rows are picked up by the delivery worker.
"""
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Set

from core.detector.models import DomainEvent
from database.models import Notification, NotificationChannelType, NotificationPreference
from database.repository import CricketRepository
from notification.tracker import NotificationTracker, generate_dedup_key

logger = logging.getLogger(__name__)

DEFAULT_CHANNELS = (NotificationChannelType.IN_APP, NotificationChannelType.EMAIL)

# PUSH has no delivery path, so it is never materialized
MATERIALIZABLE_CHANNELS = frozenset(DEFAULT_CHANNELS)


@dataclass
class FanoutResult:
    audience: int = 0
    created: int = 0
    duplicates: int = 0


def resolve_enabled_channels(
    preferences: Iterable[NotificationPreference],
    followed: Dict[Any, Set[Any]]
) -> Dict[Any, Set[NotificationChannelType]]:
    """
    Decide, per user and channel, whether the channel is enabled.

    `followed` maps each audience user to the event's teams they favorite.
    Team-scoped rows for one of those teams win over the user's global row
    (team_id NULL); among several such rows, any enabled one enables the
    channel. Rows scoped to a team the user does not follow are ignored.
    No row at all means disabled.
    """
    scoped: Dict[tuple, List[bool]] = defaultdict(list)
    global_rows: Dict[tuple, bool] = {}

    for pref in preferences:
        key = (pref.user_id, NotificationChannelType(pref.channel))
        if pref.team_id is None:
            global_rows[key] = bool(pref.enabled)
        elif pref.team_id in followed.get(pref.user_id, ()):
            scoped[key].append(bool(pref.enabled))

    enabled: Dict[Any, Set[NotificationChannelType]] = defaultdict(set)
    for key in set(scoped) | set(global_rows):
        user_id, channel = key
        is_enabled = any(scoped[key]) if key in scoped else global_rows[key]
        if is_enabled:
            enabled[user_id].add(channel)
    return enabled


class NotificationFanoutService:
    """Idempotent materialization of notification rows inside the caller's unit of work."""

    def __init__(self, channels: Iterable[str] = DEFAULT_CHANNELS):
        self.channels: List[NotificationChannelType] = []
        for name in channels:
            channel = NotificationChannelType(str(getattr(name, 'value', name)).upper())
            if channel not in MATERIALIZABLE_CHANNELS:
                logger.warning(f"Channel {channel.value} has no delivery path, not materializing it")
                continue
            if channel not in self.channels:
                self.channels.append(channel)

    def fan_out(self, repo: CricketRepository, event: DomainEvent) -> FanoutResult:
        result = FanoutResult()

        followed = repo.preferences.followed_teams_by_user(event.team_ids)
        user_ids = list(followed)
        result.audience = len(user_ids)
        if not user_ids:
            logger.debug(f"No followers for {event.type.value} on match {event.match_id}")
            return result

        prefs = repo.preferences.get_preference_rows(user_ids, event.type)
        enabled = resolve_enabled_channels(prefs, followed)

        candidates = []
        for user_id in user_ids:
            for channel in self.channels:
                if channel in enabled.get(user_id, ()):
                    key = generate_dedup_key(user_id, event.match_id, event.type, channel)
                    candidates.append((user_id, channel, key))

        if not candidates:
            logger.info(
                f"{event.type.value} for match {event.match_id}: "
                f"{result.audience} follower(s), none with the type enabled"
            )
            return result

        existing = NotificationTracker(repo).already_created(key for _, _, key in candidates)
        email_users = {u for u, c, k in candidates if c == NotificationChannelType.EMAIL and k not in existing}
        users = repo.preferences.get_users(email_users)

        rows = []
        for user_id, channel, key in candidates:
            if key in existing:
                result.duplicates += 1
                continue

            data = dict(event.data)
            data['matchId'] = str(event.match_id)
            if channel == NotificationChannelType.EMAIL:
                user = users.get(user_id)
                if user is None:
                    logger.warning(f"User {user_id} not found, skipping email notification")
                    continue
                data['email'] = user.email

            rows.append(Notification(
                user_id=user_id,
                match_id=event.match_id,
                type=event.type,
                channel=channel,
                title=event.title,
                body=event.body,
                data=data,
                dedup_key=key,
            ))

        repo.notifications.add_all(rows)
        result.created = len(rows)

        logger.info(
            f"{event.type.value} for match {event.match_id}: audience={result.audience}, "
            f"created={result.created}, duplicates={result.duplicates}"
        )
        return result
