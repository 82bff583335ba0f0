import logging
from datetime import datetime
from typing import Any, Iterable, List, Optional

from sqlalchemy import select

from core.detector.models import MatchState
from database.models import Match, MatchStatus
from database.repositories.base import BaseRepository
from etl.normalizer import NormalizedMatch

logger = logging.getLogger(__name__)


class MatchRepository(BaseRepository):
    def get_by_id(self, match_id: Any) -> Optional[Match]:
        return self.db.get(Match, match_id)

    def get_by_external_id(self, external_id: str) -> Optional[Match]:
        stmt = select(Match).where(Match.external_id == external_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_for_update(self, external_id: str) -> Optional[Match]:
        """
        Read the persisted match row and hold a row lock until the unit of
        work ends, so overlapping cycles diff against committed state.
        """
        stmt = select(Match).where(Match.external_id == external_id).with_for_update()
        return self.db.execute(stmt).scalar_one_or_none()

    def upsert(
        self,
        normalized: NormalizedMatch,
        competition_id: Any,
        home_team_id: Any,
        away_team_id: Any,
        state: MatchState,
        polled_at: datetime,
        existing: Optional[Match] = None
    ) -> Match:
        """
        Create or update the match keyed on external_id.

        `state` is the already-reconciled status/toss/result the detector
        evaluated; it is written verbatim. Descriptive fields only overwrite
        when the snapshot carries a value.
        """
        match = existing if existing is not None else self.get_by_external_id(normalized.external_id)

        if match is None:
            match = Match(external_id=normalized.external_id)
            self.db.add(match)
            logger.debug(f"Creating match {normalized.external_id}")

        match.competition_id = competition_id
        match.home_team_id = home_team_id
        match.away_team_id = away_team_id
        match.format = normalized.format
        match.start_time = normalized.start_time

        match.status = state.status
        match.toss_winner_id = state.toss_winner_id
        match.toss_decision = state.toss_decision
        match.winner_id = state.winner_id
        match.result = state.result

        for attr in ('name', 'venue', 'city', 'end_time', 'current_score', 'current_overs', 'current_run_rate'):
            value = getattr(normalized, attr)
            if value is not None:
                setattr(match, attr, value)

        match.last_polled_at = polled_at
        self.db.flush()
        return match

    def list_by_status(self, statuses: Iterable[MatchStatus], limit: int = 100) -> List[Match]:
        stmt = select(Match).where(
            Match.status.in_(list(statuses))
        ).order_by(Match.start_time).limit(limit)
        return self.db.execute(stmt).scalars().all()
