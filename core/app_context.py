import logging
from dataclasses import dataclass
from typing import Optional

from redis import Redis
from redis.exceptions import RedisError

from core.cache import CachedCricketApi, SnapshotCache
from core.cache.snapshot_cache import sanitize_url
from core.config_loader import AppConfig
from core.cricket_api import create_provider
from core.exceptions import ConfigurationError
from database.database import Database
from database.uow import cricket_uow
from etl.orchestrator import MatchIngestService
from notification.channels import NotificationChannelFactory
from notification.delivery import NotificationDeliveryService
from notification.fanout import NotificationFanoutService
from pipeline.control import MatchLockManager
from pipeline.poller import MatchPoller
from pipeline.sync import ReferenceSyncService

logger = logging.getLogger(__name__)


def connect_redis(redis_url: Optional[str]) -> Redis:
    """Open and verify the Redis connection used for the queue, cache and locks.

    Raises:
        ConfigurationError: no URL configured or Redis does not answer PING
    """
    if not redis_url:
        raise ConfigurationError(
            "REDIS_URL is not configured. The worker and scheduler need Redis for the job queue. "
            "Set REDIS_URL (e.g. redis://localhost:6379/0) or queue.redis_url in config.yaml."
        )
    try:
        client = Redis.from_url(redis_url)
        client.ping()
    except (RedisError, ValueError) as e:
        raise ConfigurationError(f"Could not connect to Redis at {sanitize_url(redis_url)}: {e}") from e

    logger.info(f"Connected to Redis at {sanitize_url(redis_url)}")
    return client


@dataclass
class AppContext:
    """Application context container that holds all wired dependencies.

    Built once per process. DB access goes through uow(), one unit of work
    per match or per delivery drain.
    """
    config: AppConfig
    db: Database
    api: CachedCricketApi
    ingest_service: MatchIngestService
    lock_manager: MatchLockManager
    poller: MatchPoller
    sync_service: ReferenceSyncService
    delivery_service: Optional[NotificationDeliveryService] = None

    def uow(self):
        return cricket_uow(self.db.SessionLocal)

    @classmethod
    def build(cls, config: AppConfig, redis_client: Optional[Redis] = None,
              db: Optional[Database] = None) -> "AppContext":
        """Build an AppContext from config.

        Args:
            config: Loaded application configuration
            redis_client: Shared connection for the snapshot cache and match
                locks; without it the cache is off and locks are in-process
            db: Existing Database, mainly for tests

        Returns:
            Fully wired AppContext instance
        """
        db = db or Database(config.database.url)

        provider = create_provider(config.cricket_api)
        api = CachedCricketApi(provider, SnapshotCache(redis_client, config.cache))

        # Fan-out and delivery only exist when notifications are enabled
        fanout_service = None
        delivery_service = None
        if config.notifications.enabled:
            fanout_service = NotificationFanoutService(config.notifications.channels)
            delivery_service = cls._build_delivery_service(config)
        else:
            logger.info("Notifications disabled in config")

        ingest_service = MatchIngestService(fanout_service)
        lock_manager = MatchLockManager(redis_client, config.locks)

        def uow_factory():
            return cricket_uow(db.SessionLocal)

        poller = MatchPoller(
            api,
            uow_factory,
            ingest_service,
            lock_manager=lock_manager,
            upcoming_days=config.cricket_api.upcoming_days,
        )
        sync_service = ReferenceSyncService(api, uow_factory, upcoming_days=config.cricket_api.sync_upcoming_days)

        return cls(
            config=config,
            db=db,
            api=api,
            ingest_service=ingest_service,
            lock_manager=lock_manager,
            poller=poller,
            sync_service=sync_service,
            delivery_service=delivery_service,
        )

    @staticmethod
    def _build_delivery_service(config: AppConfig) -> NotificationDeliveryService:
        notification_config = config.notifications
        email_channel = NotificationChannelFactory.get_channel(
            'EMAIL',
            email_config=notification_config.email,
            base_url=notification_config.base_url,
            dry_run=notification_config.dry_run,
        )
        if not email_channel.validate_config() and not notification_config.dry_run:
            logger.warning("RESEND_API_KEY not set, email notifications will be logged and marked sent")
        return NotificationDeliveryService(email_channel, batch_size=notification_config.delivery_batch_size)

    def close(self) -> None:
        self.api.close()
        self.db.dispose()
        if self.lock_manager.redis is not None:
            self.lock_manager.redis.close()
