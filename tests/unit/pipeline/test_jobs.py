import unittest
from unittest.mock import MagicMock, patch

from core.config_loader import QueueConfig
from notification.delivery import DeliveryResult
from pipeline import jobs
from pipeline.poller import PollCycleResult


class TestRunJob(unittest.TestCase):

    def setUp(self):
        self.ctx = MagicMock()
        jobs.set_context(self.ctx)

    def tearDown(self):
        jobs.set_context(None)

    def test_dispatches_poll_live(self):
        self.ctx.poller.poll_live.return_value = PollCycleResult("live-matches", fetched=2, processed=2)

        result = jobs.run_job(jobs.POLL_LIVE_MATCHES)

        self.ctx.poller.poll_live.assert_called_once()
        self.assertEqual(result["fetched"], 2)
        self.assertEqual(result["endpoint"], "live-matches")

    def test_dispatches_sync(self):
        jobs.run_job(jobs.SYNC_DATA)
        self.ctx.sync_service.sync.assert_called_once()

    def test_process_notifications_drains_in_unit_of_work(self):
        repo = MagicMock()
        self.ctx.uow.return_value.__enter__.return_value = repo
        self.ctx.delivery_service.drain.return_value = DeliveryResult(attempted=1, sent=1)

        result = jobs.run_job(jobs.PROCESS_NOTIFICATIONS)

        self.ctx.delivery_service.drain.assert_called_once_with(repo)
        self.assertEqual(result, {"attempted": 1, "sent": 1, "failed": 0})

    def test_process_notifications_when_disabled(self):
        self.ctx.delivery_service = None
        self.assertIsNone(jobs.run_job(jobs.PROCESS_NOTIFICATIONS))

    def test_unknown_job_type_is_ignored(self):
        self.assertIsNone(jobs.run_job("reticulate-splines"))
        self.ctx.assert_not_called()

    def test_failure_propagates_for_retry(self):
        self.ctx.poller.poll_upcoming.side_effect = RuntimeError("db gone")

        with self.assertRaises(RuntimeError):
            jobs.run_job(jobs.POLL_UPCOMING_MATCHES)

        self.ctx.close.assert_called_once()

    def test_context_is_closed_after_each_job(self):
        jobs.run_job(jobs.SYNC_DATA)

        self.ctx.close.assert_called_once()
        self.assertIsNone(jobs._context)

    @patch("pipeline.jobs.AppContext.build")
    @patch("pipeline.jobs.load_config")
    def test_next_job_builds_fresh_context(self, mock_load_config, mock_build):
        mock_load_config.return_value.queue.redis_url = None
        jobs.run_job(jobs.SYNC_DATA)

        jobs.run_job(jobs.SYNC_DATA)

        mock_build.assert_called_once_with(mock_load_config.return_value, None)
        mock_build.return_value.sync_service.sync.assert_called_once()
        mock_build.return_value.close.assert_called_once()


class TestEnqueueJob(unittest.TestCase):

    def test_enqueue_with_retry_policy(self):
        queue = MagicMock()

        jobs.enqueue_job(queue, jobs.POLL_LIVE_MATCHES, job_id="recurring:poll-live:1",
                         queue_config=QueueConfig(job_attempts=3, backoff_seconds=[1, 2, 4], job_timeout="2m"))

        args, kwargs = queue.enqueue.call_args
        self.assertEqual(args, (jobs.run_job, jobs.POLL_LIVE_MATCHES))
        self.assertEqual(kwargs["job_id"], "recurring:poll-live:1")
        self.assertEqual(kwargs["job_timeout"], "2m")
        self.assertEqual(kwargs["result_ttl"], jobs.RESULT_TTL_SECONDS)
        self.assertEqual(kwargs["retry"].max, 2)
        self.assertEqual(kwargs["retry"].intervals, [1, 2, 4])

    def test_single_attempt_has_no_retry(self):
        queue = MagicMock()

        jobs.enqueue_job(queue, jobs.SYNC_DATA, queue_config=QueueConfig(job_attempts=1))

        self.assertIsNone(queue.enqueue.call_args[1]["retry"])

    def test_job_types(self):
        self.assertEqual(set(jobs.JOB_TYPES), {
            'poll-live-matches', 'poll-upcoming-matches', 'process-notifications', 'sync-data'
        })


if __name__ == '__main__':
    unittest.main()
