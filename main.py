import argparse
import json
import logging
import sys
from dataclasses import asdict

from rq import Queue

from core.app_context import AppContext, connect_redis
from core.config_loader import load_config
from core.exceptions import ConfigurationError
from database.database import Database
from database.init_db import init_db
from pipeline import jobs
from pipeline.scheduler import PipelineScheduler
from pipeline.worker import start_worker

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

POLL_MATCH = 'poll-match'


def _require_redis(config):
    try:
        return connect_redis(config.queue.redis_url)
    except ConfigurationError as e:
        logger.error(str(e))
        sys.exit(1)


def cmd_worker(config, args):
    redis_conn = _require_redis(config)
    init_db(Database(config.database.url))
    try:
        start_worker(redis_conn, config.queue, burst=args.burst)
    except KeyboardInterrupt:
        logger.info("Worker stopped")


def cmd_scheduler(config, args):
    redis_conn = _require_redis(config)
    queue = Queue(config.queue.name, connection=redis_conn)
    PipelineScheduler(queue, config).run()


def cmd_run(config, args):
    """Run one job in this process, without the queue."""
    redis_client = None
    if config.queue.redis_url:
        try:
            redis_client = connect_redis(config.queue.redis_url)
        except ConfigurationError as e:
            logger.warning(f"{e}. Running without cache and with in-process locks.")

    ctx = AppContext.build(config, redis_client)
    jobs.set_context(ctx)
    try:
        if args.job == POLL_MATCH:
            if not args.match_id:
                logger.error("--match-id is required for poll-match")
                sys.exit(2)
            result = asdict(ctx.poller.poll_match(args.match_id))
        else:
            result = jobs.run_job(args.job)
    except Exception as e:
        logger.error(f"{args.job} failed: {e}", exc_info=args.verbose)
        sys.exit(1)
    finally:
        jobs.release_context()

    print(json.dumps(result, indent=2, default=str))


def cmd_init_db(config, args):
    init_db(Database(config.database.url))


def cmd_clear_cache(config, args):
    redis_conn = _require_redis(config)
    ctx = AppContext.build(config, redis_conn)
    removed = ctx.api.clear_cache()
    logger.info(f"Cleared {removed} cached snapshot key(s)")


def main():
    parser = argparse.ArgumentParser(description="Cricket match alert pipeline")
    parser.add_argument('--config', help='Path to config.yaml (default: $CRICKET_CONFIG or ./config.yaml)')
    parser.add_argument('--verbose', action='store_true', help='Enable debug logging')
    subparsers = parser.add_subparsers(dest='command', required=True)

    worker_parser = subparsers.add_parser('worker', help='Consume the job queue')
    worker_parser.add_argument('--burst', action='store_true', help='Process all queued jobs and exit')
    worker_parser.set_defaults(func=cmd_worker)

    scheduler_parser = subparsers.add_parser('scheduler', help='Enqueue recurring poll, delivery and sync jobs')
    scheduler_parser.set_defaults(func=cmd_scheduler)

    run_parser = subparsers.add_parser('run', help='Run a single job in this process')
    run_parser.add_argument('job', choices=list(jobs.JOB_TYPES) + [POLL_MATCH])
    run_parser.add_argument('--match-id', help='Provider match id (poll-match only)')
    run_parser.set_defaults(func=cmd_run)

    init_parser = subparsers.add_parser('init-db', help='Create database tables')
    init_parser.set_defaults(func=cmd_init_db)

    cache_parser = subparsers.add_parser('clear-cache', help='Drop cached provider responses')
    cache_parser.set_defaults(func=cmd_clear_cache)

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        config = load_config(args.config)
    except ConfigurationError as e:
        logger.error(str(e))
        sys.exit(1)

    args.func(config, args)


if __name__ == "__main__":
    main()
