"""
RQ job entry points.

Every queued job is `run_job(job_type)`. RQ runs each job in a freshly
forked work-horse, so the AppContext (DB engine, HTTP session, Redis
connection) is built when the job starts and closed when it ends.

Usage:
    from pipeline.jobs import enqueue_job, POLL_LIVE_MATCHES

    enqueue_job(queue, POLL_LIVE_MATCHES, queue_config=config.queue)
"""
import logging
import time
from dataclasses import asdict, is_dataclass
from typing import Any, Callable, Dict, Optional

from rq import Queue, Retry
from rq.job import Job

from core.app_context import AppContext, connect_redis
from core.config_loader import QueueConfig, load_config

logger = logging.getLogger(__name__)

POLL_LIVE_MATCHES = 'poll-live-matches'
POLL_UPCOMING_MATCHES = 'poll-upcoming-matches'
PROCESS_NOTIFICATIONS = 'process-notifications'
SYNC_DATA = 'sync-data'

RESULT_TTL_SECONDS = 3600
FAILURE_TTL_SECONDS = 86400

_context: Optional[AppContext] = None


def get_context() -> AppContext:
    global _context
    if _context is None:
        config = load_config()
        redis_client = connect_redis(config.queue.redis_url) if config.queue.redis_url else None
        _context = AppContext.build(config, redis_client)
    return _context


def set_context(ctx: Optional[AppContext]) -> None:
    """Install a prebuilt context for the next job (one-off CLI runs and tests)."""
    global _context
    _context = ctx


def release_context() -> None:
    """Close and drop the current context; the next job builds a fresh one."""
    global _context
    ctx, _context = _context, None
    if ctx is not None:
        ctx.close()


def _poll_live(ctx: AppContext):
    return ctx.poller.poll_live()


def _poll_upcoming(ctx: AppContext):
    return ctx.poller.poll_upcoming()


def _process_notifications(ctx: AppContext):
    if ctx.delivery_service is None:
        logger.debug("Notifications disabled, nothing to deliver")
        return None
    with ctx.uow() as repo:
        return ctx.delivery_service.drain(repo)


def _sync_data(ctx: AppContext):
    return ctx.sync_service.sync()


JOB_HANDLERS: Dict[str, Callable[[AppContext], Any]] = {
    POLL_LIVE_MATCHES: _poll_live,
    POLL_UPCOMING_MATCHES: _poll_upcoming,
    PROCESS_NOTIFICATIONS: _process_notifications,
    SYNC_DATA: _sync_data,
}

JOB_TYPES = tuple(JOB_HANDLERS)


def run_job(job_type: str) -> Optional[Dict[str, Any]]:
    """
    Dispatch one job. Unknown types are logged and ignored.

    Exceptions propagate so RQ marks the job failed and applies its retry
    policy.
    """
    handler = JOB_HANDLERS.get(job_type)
    if handler is None:
        logger.warning(f"Unknown job type: {job_type}")
        return None

    logger.info(f"Processing job: {job_type}")
    start = time.time()
    try:
        result = handler(get_context())
    except Exception as e:
        logger.error(f"Job failed: {job_type}: {e}")
        raise
    finally:
        release_context()

    logger.info(f"Completed job: {job_type} in {(time.time() - start) * 1000:.0f}ms")
    return asdict(result) if is_dataclass(result) else result


def enqueue_job(
    queue: Queue,
    job_type: str,
    job_id: Optional[str] = None,
    queue_config: Optional[QueueConfig] = None
) -> Job:
    queue_config = queue_config or QueueConfig()

    retry = None
    if queue_config.job_attempts > 1:
        retry = Retry(max=queue_config.job_attempts - 1, interval=queue_config.backoff_seconds)

    job = queue.enqueue(
        run_job,
        job_type,
        job_id=job_id,
        description=job_type,
        job_timeout=queue_config.job_timeout,
        result_ttl=RESULT_TTL_SECONDS,
        failure_ttl=FAILURE_TTL_SECONDS,
        retry=retry,
    )
    logger.debug(f"Enqueued {job_type} as job {job.id}")
    return job
