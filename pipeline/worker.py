"""
RQ worker launcher for the cricket queue.

With worker_concurrency > 1 an RQ WorkerPool forks that many worker
processes, so a slow poll never holds up delivery or the other polls.
"""
import logging

from redis import Redis
from rq import Queue, Worker
from rq.worker_pool import WorkerPool

from core.config_loader import QueueConfig

logger = logging.getLogger(__name__)


def start_worker(redis_conn: Redis, queue_config: QueueConfig, burst: bool = False) -> None:
    """Start consuming the queue. Blocks until stopped (or drained, in burst mode)."""
    concurrency = max(1, queue_config.worker_concurrency)

    logger.info("Starting RQ Worker")
    logger.info(f"Queue: {queue_config.name}")
    logger.info(f"Concurrency: {concurrency}")
    logger.info(f"Burst mode: {burst}")

    if concurrency == 1:
        worker = Worker([Queue(queue_config.name, connection=redis_conn)], connection=redis_conn)
        worker.work(burst=burst)
        return

    pool = WorkerPool([queue_config.name], connection=redis_conn, num_workers=concurrency)
    pool.start(burst=burst, logging_level=logging.getLevelName(logging.getLogger().level))
