import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from core.cricket_api.models import ApiMatch
from core.detector import MatchState, MatchContext, DomainEvent, detect_transitions
from database.models import Match
from database.repository import CricketRepository
from etl.normalizer import NormalizedMatch, normalize_match
from etl.resolver import ReferenceResolver, ResolvedReferences

logger = logging.getLogger(__name__)


@dataclass
class IngestOutcome:
    external_id: str
    match_id: object
    created: bool
    events: List[DomainEvent] = field(default_factory=list)
    notifications_created: int = 0


def reconcile_state(previous: Optional[MatchState], normalized: NormalizedMatch,
                    refs: ResolvedReferences) -> MatchState:
    """
    Build the state to persist from the snapshot.

    Toss and result fields are sticky: a snapshot that omits them (the
    provider's list endpoints often do) keeps the stored values instead of
    clearing them, so a later snapshot cannot re-trigger the toss event.
    """
    by_external_id = {
        refs.home.external_id: refs.home.id,
        refs.away.external_id: refs.away.id,
    }
    toss_winner_id = by_external_id.get(normalized.toss_winner_external_id)
    winner_id = by_external_id.get(normalized.winner_external_id)

    if previous is None:
        return MatchState(
            status=normalized.status,
            toss_winner_id=toss_winner_id,
            toss_decision=normalized.toss_decision,
            winner_id=winner_id,
            result=normalized.result,
        )

    return MatchState(
        status=normalized.status,
        toss_winner_id=toss_winner_id if toss_winner_id is not None else previous.toss_winner_id,
        toss_decision=normalized.toss_decision or previous.toss_decision,
        winner_id=winner_id if winner_id is not None else previous.winner_id,
        result=normalized.result or previous.result,
    )


class MatchIngestService:
    """Per-match read -> diff -> write -> fan-out, inside the caller's unit of work.

    The service does not manage transactions: the match upsert and the
    notification rows it produces commit or roll back together with the
    cricket_uow() that supplied `repo`.

    Usage:
        with cricket_uow(db.SessionLocal) as repo:
            outcome = ingest_service.process_snapshot(repo, api_match)
        # commit happens automatically
    """

    def __init__(self, fanout_service=None, resolver: Optional[ReferenceResolver] = None):
        self.fanout = fanout_service
        self.resolver = resolver or ReferenceResolver()

    def process_snapshot(self, repo: CricketRepository, api_match: ApiMatch) -> IngestOutcome:
        """Ingest one provider snapshot.

        Raises:
            MalformedSnapshotError: snapshot cannot be normalized
            SQLAlchemyError: state store failure
        """
        start = time.time()
        normalized = normalize_match(api_match)
        refs = self.resolver.resolve(repo, normalized)

        existing: Optional[Match] = repo.matches.get_for_update(normalized.external_id)
        previous = MatchState.from_record(existing) if existing is not None else None
        current = reconcile_state(previous, normalized, refs)

        match = repo.matches.upsert(
            normalized,
            competition_id=refs.competition.id,
            home_team_id=refs.home.id,
            away_team_id=refs.away.id,
            state=current,
            polled_at=datetime.now(timezone.utc),
            existing=existing,
        )

        context = MatchContext(
            match_id=match.id,
            external_id=match.external_id,
            home_team_id=refs.home.id,
            away_team_id=refs.away.id,
            home_team_name=refs.home.name,
            away_team_name=refs.away.name,
        )
        events = detect_transitions(previous, current, context)

        outcome = IngestOutcome(
            external_id=normalized.external_id,
            match_id=match.id,
            created=existing is None,
            events=events,
        )

        if events and self.fanout is not None:
            for event in events:
                result = self.fanout.fan_out(repo, event)
                outcome.notifications_created += result.created
        elif events:
            logger.info(f"Notifications disabled, {len(events)} event(s) for {normalized.external_id} not fanned out")

        logger.debug(
            f"Ingested match {normalized.external_id} ({current.status.value}) "
            f"in {time.time() - start:.3f}s, events={len(events)}"
        )
        return outcome
