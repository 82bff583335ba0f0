import logging

from sqlalchemy.orm import Session

from database.repositories import (
    BaseRepository,
    MatchRepository,
    ReferenceRepository,
    NotificationRepository,
    PreferenceRepository,
    SyncLogRepository,
)

logger = logging.getLogger(__name__)


class CricketRepository(BaseRepository):
    """
    All per-aggregate repositories bound to one Session, so everything done
    through it commits or rolls back together.
    """

    def __init__(self, db: Session):
        super().__init__(db)
        self.matches = MatchRepository(db)
        self.references = ReferenceRepository(db)
        self.notifications = NotificationRepository(db)
        self.preferences = PreferenceRepository(db)
        self.sync_log = SyncLogRepository(db)
