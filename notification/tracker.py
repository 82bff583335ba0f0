"""
Notification Tracker - deduplication keys.

A notification is identified by (user, match, event type, channel). The key
is stored in Notification.dedup_key, which carries a unique constraint, so
re-running fan-out for the same event can never double-notify.
"""

import hashlib
from typing import Any, Iterable, Set

from database.repository import CricketRepository


def _enum_value(value: Any) -> str:
    return str(getattr(value, 'value', value))


def generate_dedup_key(user_id: Any, match_id: Any, event_type: Any, channel: Any) -> str:
    key = f"{user_id}:{match_id}:{_enum_value(event_type)}:{_enum_value(channel)}"
    return hashlib.sha256(key.encode('utf-8')).hexdigest()[:32]


class NotificationTracker:
    """Answers "was this (user, match, type, channel) already materialized?" in bulk."""

    def __init__(self, repo: CricketRepository):
        self.repo = repo

    def already_created(self, dedup_keys: Iterable[str]) -> Set[str]:
        return self.repo.notifications.existing_dedup_keys(dedup_keys)
