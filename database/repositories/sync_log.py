from typing import List, Optional

from sqlalchemy import select

from database.models import ApiSyncLog, SyncStatus
from database.repositories.base import BaseRepository


class SyncLogRepository(BaseRepository):
    def record(
        self,
        provider: str,
        endpoint: str,
        status: SyncStatus,
        records_count: Optional[int] = None,
        error_message: Optional[str] = None
    ) -> ApiSyncLog:
        entry = ApiSyncLog(
            provider=provider,
            endpoint=endpoint,
            status=status,
            records_count=records_count,
            error_message=error_message,
        )
        self.db.add(entry)
        self.db.flush()
        return entry

    def latest(self, endpoint: Optional[str] = None, limit: int = 20) -> List[ApiSyncLog]:
        stmt = select(ApiSyncLog)
        if endpoint:
            stmt = stmt.where(ApiSyncLog.endpoint == endpoint)
        stmt = stmt.order_by(ApiSyncLog.id.desc()).limit(limit)
        return self.db.execute(stmt).scalars().all()
