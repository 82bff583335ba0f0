"""Snapshot Cache - Redis response cache in front of the cricket data provider."""
import logging
from typing import Callable, List, Optional, Type
from urllib.parse import urlparse

from pydantic import ValidationError
from redis import Redis
from redis.exceptions import RedisError

from core.config_loader import CacheConfig
from core.cricket_api.interfaces import CricketApiProvider
from core.cricket_api.models import ApiResponse, ApiMatch, ApiCompetition

logger = logging.getLogger(__name__)

KEY_PREFIX = "cricket:"
LIVE_MATCHES_KEY = "cricket:matches:live"
COMPETITIONS_KEY = "cricket:competitions"

MatchListResponse = ApiResponse[List[ApiMatch]]
MatchResponse = ApiResponse[ApiMatch]
CompetitionListResponse = ApiResponse[List[ApiCompetition]]


def upcoming_matches_key(days: int) -> str:
    return f"cricket:matches:upcoming:{days}"


def recent_matches_key(days: int) -> str:
    return f"cricket:matches:recent:{days}"


def match_detail_key(match_id: str) -> str:
    return f"cricket:match:{match_id}"


def sanitize_url(url: str) -> str:
    """Remove credentials from URL for safe logging."""
    try:
        parsed = urlparse(url)
        if parsed.password:
            sanitized = parsed._replace(
                netloc=f"{parsed.username or ''}:*@{parsed.hostname}:{parsed.port or 6379}"
            )
            return sanitized.geturl()
        return url
    except ValueError:
        return url


class SnapshotCache:
    """
    Stores successful provider envelopes as JSON under cricket:* keys.

    Any Redis failure is logged and treated as a miss so the caller falls
    back to a direct provider fetch.
    """

    def __init__(self, redis_client: Optional[Redis], config: CacheConfig):
        self._redis = redis_client
        self.config = config

    @property
    def is_available(self) -> bool:
        return self._redis is not None and self.config.enabled

    def get(self, key: str, response_type: Type[ApiResponse]) -> Optional[ApiResponse]:
        if not self.is_available:
            return None
        try:
            raw = self._redis.get(key)
        except RedisError as e:
            logger.warning(f"Error reading {key} from snapshot cache: {e}")
            return None

        if raw is None:
            logger.debug(f"Cache miss for {key}")
            return None

        try:
            response = response_type.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Discarding unreadable cache entry {key}: {e}")
            return None
        logger.debug(f"Cache hit for {key}")
        return response

    def set(self, key: str, response: ApiResponse, ttl_seconds: int) -> bool:
        if not self.is_available or not response.success:
            return False
        try:
            self._redis.setex(key, ttl_seconds, response.model_dump_json())
            return True
        except RedisError as e:
            logger.warning(f"Error writing {key} to snapshot cache: {e}")
            return False

    def clear(self) -> int:
        """Delete every cricket:* key (SCAN, never KEYS)."""
        if not self.is_available:
            return 0

        deleted = 0
        try:
            cursor = 0
            while True:
                cursor, keys = self._redis.scan(cursor=cursor, match=f"{KEY_PREFIX}*", count=100)
                # Lock keys share the prefix but are not cache entries
                keys = [k for k in keys if ':lock:' not in (k.decode() if isinstance(k, bytes) else k)]
                if keys:
                    self._redis.delete(*keys)
                    deleted += len(keys)
                if cursor == 0:
                    break
        except RedisError as e:
            logger.warning(f"Error clearing snapshot cache: {e}")

        logger.info(f"Cleared {deleted} keys from snapshot cache")
        return deleted


class CachedCricketApi(CricketApiProvider):
    """Wraps any provider with SnapshotCache, exposing the same interface."""

    def __init__(self, provider: CricketApiProvider, cache: SnapshotCache):
        self.provider = provider
        self.cache = cache
        self.name = provider.name

    def _cached(
        self,
        key: str,
        ttl_seconds: int,
        response_type: Type[ApiResponse],
        fetch: Callable[[], ApiResponse]
    ) -> ApiResponse:
        cached = self.cache.get(key, response_type)
        if cached is not None:
            return cached

        response = fetch()
        if response.success:
            self.cache.set(key, response, ttl_seconds)
        return response

    def get_live_matches(self) -> MatchListResponse:
        return self._cached(
            LIVE_MATCHES_KEY, self.cache.config.live_ttl_seconds,
            MatchListResponse, self.provider.get_live_matches
        )

    def get_upcoming_matches(self, days: int = 7) -> MatchListResponse:
        return self._cached(
            upcoming_matches_key(days), self.cache.config.upcoming_ttl_seconds,
            MatchListResponse, lambda: self.provider.get_upcoming_matches(days)
        )

    def get_recent_matches(self, days: int = 7) -> MatchListResponse:
        return self._cached(
            recent_matches_key(days), self.cache.config.recent_ttl_seconds,
            MatchListResponse, lambda: self.provider.get_recent_matches(days)
        )

    def get_match_by_id(self, match_id: str) -> MatchResponse:
        return self._cached(
            match_detail_key(match_id), self.cache.config.match_ttl_seconds,
            MatchResponse, lambda: self.provider.get_match_by_id(match_id)
        )

    def get_competitions(self) -> CompetitionListResponse:
        return self._cached(
            COMPETITIONS_KEY, self.cache.config.competitions_ttl_seconds,
            CompetitionListResponse, self.provider.get_competitions
        )

    def clear_cache(self) -> int:
        return self.cache.clear()

    def close(self) -> None:
        self.provider.close()
