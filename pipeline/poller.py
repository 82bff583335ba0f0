"""
Poll cycles.

One cycle = one fetch from the snapshot source, then one isolated
ingest per returned match. A single bad snapshot or a lost lock fails
only that match; an error envelope from the source fails the whole cycle
so the queue's retry/backoff applies.
"""
import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from core.cricket_api.interfaces import CricketApiProvider
from core.cricket_api.models import ApiMatch, ApiResponse
from core.exceptions import SnapshotSourceError
from database.models import SyncStatus
from etl.orchestrator import IngestOutcome, MatchIngestService
from pipeline.control import MatchLockManager

logger = logging.getLogger(__name__)

LIVE_ENDPOINT = "live-matches"
UPCOMING_ENDPOINT = "upcoming-matches"
MATCH_ENDPOINT = "match-detail"


@dataclass
class PollCycleResult:
    endpoint: str
    fetched: int = 0
    processed: int = 0
    failed: int = 0
    events: int = 0
    notifications: int = 0


class MatchPoller:
    """Runs poll cycles against the snapshot source.

    `uow_factory` is a zero-argument callable returning a unit of work
    context manager, normally `lambda: cricket_uow(db.SessionLocal)`.
    Every match gets its own unit of work; the sync-log entry is written in
    a separate one after the matches are done.
    """

    def __init__(
        self,
        api: CricketApiProvider,
        uow_factory: Callable,
        ingest_service: MatchIngestService,
        lock_manager: Optional[MatchLockManager] = None,
        upcoming_days: int = 7
    ):
        self.api = api
        self.uow_factory = uow_factory
        self.ingest = ingest_service
        self.locks = lock_manager or MatchLockManager()
        self.upcoming_days = upcoming_days

    def poll_live(self) -> PollCycleResult:
        return self._run_cycle(LIVE_ENDPOINT, self.api.get_live_matches)

    def poll_upcoming(self) -> PollCycleResult:
        return self._run_cycle(
            UPCOMING_ENDPOINT,
            lambda: self.api.get_upcoming_matches(self.upcoming_days)
        )

    def poll_match(self, external_id: str) -> PollCycleResult:
        """Refresh a single match by its provider id."""
        def fetch() -> ApiResponse:
            response = self.api.get_match_by_id(external_id)
            if not response.success:
                return response
            return ApiResponse.ok([response.data] if response.data is not None else [])

        return self._run_cycle(MATCH_ENDPOINT, fetch)

    def _run_cycle(self, endpoint: str, fetch: Callable[[], ApiResponse]) -> PollCycleResult:
        start = time.time()
        logger.info(f"Polling {endpoint}")

        response = fetch()
        if not response.success:
            error = response.error or "unknown error"
            logger.error(f"Snapshot source failed for {endpoint}: {error}")
            self._record(endpoint, SyncStatus.ERROR, error_message=error)
            raise SnapshotSourceError(endpoint, error)

        matches: List[ApiMatch] = response.data or []
        result = PollCycleResult(endpoint=endpoint, fetched=len(matches))

        for api_match in matches:
            try:
                outcome = self._process_one(api_match)
            except Exception as e:
                result.failed += 1
                logger.error(f"Failed to process match {api_match.id or '<no id>'}: {e}", exc_info=True)
                continue
            result.processed += 1
            result.events += len(outcome.events)
            result.notifications += outcome.notifications_created

        error_message = f"{result.failed} of {result.fetched} matches failed" if result.failed else None
        self._record(endpoint, SyncStatus.SUCCESS, records_count=result.fetched, error_message=error_message)

        logger.info(
            f"Polled {endpoint} in {time.time() - start:.2f}s: fetched={result.fetched} "
            f"processed={result.processed} failed={result.failed} "
            f"events={result.events} notifications={result.notifications}"
        )
        return result

    def _process_one(self, api_match: ApiMatch) -> IngestOutcome:
        with self.locks.hold(api_match.id):
            with self.uow_factory() as repo:
                return self.ingest.process_snapshot(repo, api_match)

    def _record(self, endpoint: str, status: SyncStatus, records_count: Optional[int] = None,
                error_message: Optional[str] = None) -> None:
        try:
            with self.uow_factory() as repo:
                repo.sync_log.record(self.api.name, endpoint, status,
                                     records_count=records_count, error_message=error_message)
        except Exception as e:
            # Audit trail only; never turns a finished cycle into a failed one
            logger.warning(f"Could not write sync log for {endpoint}: {e}")
