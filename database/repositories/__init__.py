from database.repositories.base import BaseRepository
from database.repositories.match import MatchRepository
from database.repositories.reference import ReferenceRepository
from database.repositories.notification import NotificationRepository
from database.repositories.preference import PreferenceRepository
from database.repositories.sync_log import SyncLogRepository

__all__ = [
    'BaseRepository',
    'MatchRepository',
    'ReferenceRepository',
    'NotificationRepository',
    'PreferenceRepository',
    'SyncLogRepository',
]
