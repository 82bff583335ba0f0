from .base import Base, JsonType
from .enums import (
    MatchStatus, MatchFormat, CompetitionType, NotificationType, NotificationChannelType, SyncStatus,
    PRE_MATCH_STATUSES, IN_PLAY_STATUSES, TERMINAL_STATUSES,
)
from .reference import Team, Competition, DEFAULT_COMPETITION_EXTERNAL_ID, DEFAULT_COMPETITION_NAME
from .match import Match
from .user import User, FavoriteTeam, NotificationPreference
from .notification import Notification
from .sync_log import ApiSyncLog

__all__ = [
    'Base',
    'JsonType',
    'MatchStatus',
    'MatchFormat',
    'CompetitionType',
    'NotificationType',
    'NotificationChannelType',
    'SyncStatus',
    'PRE_MATCH_STATUSES',
    'IN_PLAY_STATUSES',
    'TERMINAL_STATUSES',
    'Team',
    'Competition',
    'DEFAULT_COMPETITION_EXTERNAL_ID',
    'DEFAULT_COMPETITION_NAME',
    'Match',
    'User',
    'FavoriteTeam',
    'NotificationPreference',
    'Notification',
    'ApiSyncLog',
]
