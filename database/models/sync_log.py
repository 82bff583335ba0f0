from sqlalchemy import Column, Integer, Text, TIMESTAMP, Enum, func, Index

from .base import Base
from .enums import SyncStatus


class ApiSyncLog(Base):
    """Append-only audit entry, one per poll or sync cycle."""
    __tablename__ = 'api_sync_log'

    id = Column(Integer, primary_key=True, autoincrement=True)
    provider = Column(Text, nullable=False)
    endpoint = Column(Text, nullable=False)  # live-matches, upcoming-matches, data-sync, ...
    status = Column(Enum(SyncStatus, native_enum=False, length=16,
                         values_callable=lambda e: [m.value for m in e]), nullable=False)
    records_count = Column(Integer)
    error_message = Column(Text)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index('idx_api_sync_log_endpoint', 'endpoint', 'created_at'),
    )
