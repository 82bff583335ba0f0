"""
Scheduler - enqueues the recurring pipeline jobs onto the RQ queue.

Each trigger is independent: a trigger whose previous job is still queued or
running is skipped for that tick, and the other triggers keep firing. Every
trigger is due on the first tick, so starting the scheduler also enqueues the
initial data sync.

Usage:
    scheduler = PipelineScheduler(Queue('cricket', connection=redis), config)
    scheduler.run()
"""
import logging
import signal
import time
from dataclasses import dataclass
from typing import List, Optional

from redis.exceptions import RedisError
from rq import Queue
from rq.exceptions import NoSuchJobError
from rq.job import Job, JobStatus

from core.config_loader import AppConfig
from pipeline.jobs import (
    POLL_LIVE_MATCHES,
    POLL_UPCOMING_MATCHES,
    PROCESS_NOTIFICATIONS,
    SYNC_DATA,
    enqueue_job,
)

logger = logging.getLogger(__name__)

RECURRING_PREFIX = "recurring:"
PENDING_STATUSES = (JobStatus.QUEUED, JobStatus.STARTED, JobStatus.SCHEDULED)


@dataclass
class RecurringTrigger:
    name: str
    job_type: str
    interval_seconds: float
    next_run_at: float = 0.0
    last_job_id: Optional[str] = None

    def is_due(self, now: float) -> bool:
        return now >= self.next_run_at

    def job_id(self, now: float) -> str:
        return f"{RECURRING_PREFIX}{self.name}:{int(now)}"


def build_triggers(config: AppConfig) -> List[RecurringTrigger]:
    schedule = config.schedule
    triggers = [
        RecurringTrigger('poll-live', POLL_LIVE_MATCHES, schedule.live_poll_interval_seconds),
        RecurringTrigger('poll-upcoming', POLL_UPCOMING_MATCHES, schedule.upcoming_poll_interval_seconds),
    ]
    if config.notifications.enabled:
        triggers.append(
            RecurringTrigger('send-notifications', PROCESS_NOTIFICATIONS, schedule.delivery_interval_seconds)
        )
    triggers.append(RecurringTrigger('sync-data', SYNC_DATA, schedule.sync_interval_seconds))
    return triggers


class PipelineScheduler:
    def __init__(self, queue: Queue, config: AppConfig, triggers: Optional[List[RecurringTrigger]] = None):
        self.queue = queue
        self.config = config
        self.triggers = triggers if triggers is not None else build_triggers(config)
        self.running = False

    def clear_stale_registrations(self) -> int:
        """Remove recurring jobs left queued or scheduled by a previous scheduler process."""
        removed = 0

        for job_id in self.queue.get_job_ids():
            if job_id.startswith(RECURRING_PREFIX):
                self.queue.remove(job_id)
                removed += 1

        registry = self.queue.scheduled_job_registry
        for job_id in registry.get_job_ids():
            if job_id.startswith(RECURRING_PREFIX):
                registry.remove(job_id, delete_job=True)
                removed += 1

        if removed:
            logger.info(f"Cleared {removed} stale recurring job(s)")
        return removed

    def _previous_pending(self, trigger: RecurringTrigger) -> bool:
        if not trigger.last_job_id:
            return False
        try:
            job = Job.fetch(trigger.last_job_id, connection=self.queue.connection)
        except NoSuchJobError:
            return False
        return job.get_status() in PENDING_STATUSES

    def tick(self, now: Optional[float] = None) -> List[str]:
        """Enqueue every due trigger. Returns the ids of the jobs enqueued."""
        now = time.time() if now is None else now
        enqueued = []

        for trigger in self.triggers:
            if not trigger.is_due(now):
                continue
            trigger.next_run_at = now + trigger.interval_seconds

            try:
                if self._previous_pending(trigger):
                    logger.info(f"Skipping {trigger.name}: previous job {trigger.last_job_id} still pending")
                    continue
                job = enqueue_job(
                    self.queue,
                    trigger.job_type,
                    job_id=trigger.job_id(now),
                    queue_config=self.config.queue,
                )
            except RedisError as e:
                logger.error(f"Could not enqueue {trigger.name}: {e}")
                continue

            trigger.last_job_id = job.id
            enqueued.append(job.id)
            logger.info(f"Enqueued {trigger.job_type} ({job.id})")

        return enqueued

    def stop(self, *_args) -> None:
        logger.info("Shutdown signal received")
        self.running = False

    def run(self) -> None:
        if not self.config.schedule.enabled:
            logger.info("Scheduler disabled in config (schedule.enabled = false)")
            return

        signal.signal(signal.SIGINT, self.stop)
        signal.signal(signal.SIGTERM, self.stop)

        self.clear_stale_registrations()
        self.running = True
        logger.info(
            "Scheduler started: " + ", ".join(f"{t.name} every {t.interval_seconds}s" for t in self.triggers)
        )

        while self.running:
            self.tick()
            time.sleep(self.config.schedule.tick_seconds)

        logger.info("Scheduler stopped")
