import contextlib
import logging
import os
import threading
import time
from typing import Dict, Optional

from redis import Redis
from redis.exceptions import LockError

from core.config_loader import LockConfig
from core.exceptions import MatchLockTimeout

logger = logging.getLogger(__name__)

LOCK_KEY_PREFIX = "cricket:lock:match:"


def lock_key(external_id: str) -> str:
    return f"{LOCK_KEY_PREFIX}{external_id}"


class MatchLockManager:
    """
    Serializes ingest of a single match across poll cycles.

    Two cycles (e.g. live and upcoming) can see the same fixture at the same
    time; both would diff against the same stored state and emit the same
    transition. Holding this lock around the read-diff-write keeps that
    sequence exclusive per external id.

    With a Redis client the lock is a redis-py Lock shared by every worker
    process. Without one (tests, one-off `run` invocations) a per-id
    threading.Lock is used, which only covers the current process.
    """

    def __init__(self, redis_client: Optional[Redis] = None, lock_config: Optional[LockConfig] = None):
        self.redis = redis_client
        self.config = lock_config or LockConfig()
        self._local_locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def _local_lock(self, external_id: str) -> threading.Lock:
        with self._guard:
            lock = self._local_locks.get(external_id)
            if lock is None:
                lock = threading.Lock()
                self._local_locks[external_id] = lock
            return lock

    @contextlib.contextmanager
    def hold(self, external_id: str):
        """
        Hold the per-match lock for the duration of the block.

        Raises:
            MatchLockTimeout: lock not acquired within blocking_timeout_seconds
        """
        if self.redis is None:
            with self._hold_local(external_id):
                yield
            return

        lock = self.redis.lock(
            lock_key(external_id),
            timeout=self.config.timeout_seconds,
            blocking_timeout=self.config.blocking_timeout_seconds,
        )
        started = time.time()
        if not lock.acquire():
            logger.warning(f"Lock contention on match {external_id}, gave up after "
                           f"{time.time() - started:.1f}s")
            raise MatchLockTimeout(external_id)

        logger.debug(f"Acquired lock for match {external_id} (pid={os.getpid()})")
        try:
            yield
        finally:
            try:
                lock.release()
            except LockError as e:
                # Expired while held: the work outlived timeout_seconds
                logger.warning(f"Lock for match {external_id} was lost before release: {e}")

    @contextlib.contextmanager
    def _hold_local(self, external_id: str):
        lock = self._local_lock(external_id)
        if not lock.acquire(timeout=self.config.blocking_timeout_seconds):
            logger.warning(f"Lock contention on match {external_id} (in-process)")
            raise MatchLockTimeout(external_id)
        try:
            yield
        finally:
            lock.release()
