"""Cache Module - Caching services."""
from core.cache.snapshot_cache import (
    SnapshotCache,
    CachedCricketApi,
    LIVE_MATCHES_KEY,
    COMPETITIONS_KEY,
    upcoming_matches_key,
    recent_matches_key,
    match_detail_key,
)

__all__ = [
    'SnapshotCache',
    'CachedCricketApi',
    'LIVE_MATCHES_KEY',
    'COMPETITIONS_KEY',
    'upcoming_matches_key',
    'recent_matches_key',
    'match_detail_key',
]
