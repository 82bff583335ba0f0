from unittest.mock import patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from core.app_context import AppContext, connect_redis
from core.config_loader import AppConfig, NotificationConfig
from core.exceptions import ConfigurationError
from pipeline.control import MatchLockManager


class TestConnectRedis:
    def test_missing_url(self):
        with pytest.raises(ConfigurationError, match="REDIS_URL"):
            connect_redis(None)

    @patch("core.app_context.Redis.from_url")
    def test_unreachable_redis_hides_password(self, mock_from_url):
        mock_from_url.return_value.ping.side_effect = RedisConnectionError("Connection refused")

        with pytest.raises(ConfigurationError) as exc_info:
            connect_redis("redis://:s3cret@redis:6379/0")

        assert "s3cret" not in str(exc_info.value)

    @patch("core.app_context.Redis.from_url")
    def test_connects(self, mock_from_url):
        assert connect_redis("redis://localhost:6379/0") is mock_from_url.return_value
        mock_from_url.return_value.ping.assert_called_once()


@pytest.mark.db
class TestAppContext:
    def test_build_without_redis(self, db):
        ctx = AppContext.build(AppConfig(), db=db)

        assert isinstance(ctx.lock_manager, MatchLockManager)
        assert ctx.lock_manager.redis is None
        assert ctx.delivery_service is not None
        assert ctx.ingest_service.fanout is not None
        assert ctx.poller.upcoming_days == 7
        assert ctx.sync_service.upcoming_days == 30

    def test_notifications_disabled(self, db):
        ctx = AppContext.build(AppConfig(notifications=NotificationConfig(enabled=False)), db=db)

        assert ctx.delivery_service is None
        assert ctx.ingest_service.fanout is None

    def test_uow_commits(self, db):
        ctx = AppContext.build(AppConfig(), db=db)

        with ctx.uow() as repo:
            repo.references.get_default_competition()
        with ctx.uow() as repo:
            assert repo.references.get_default_competition().is_default
