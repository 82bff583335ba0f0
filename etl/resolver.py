"""
Reference Resolver.

Ensures canonical Team and Competition rows exist for a normalized snapshot
before the match upsert, so the match's foreign keys are always valid.
"""
import logging
from dataclasses import dataclass

from database.models import Team, Competition
from database.repository import CricketRepository
from etl.normalizer import NormalizedMatch

logger = logging.getLogger(__name__)


@dataclass
class ResolvedReferences:
    home: Team
    away: Team
    competition: Competition


class ReferenceResolver:
    """Idempotent get-or-create of a snapshot's teams and competition.

    Store errors are not caught here: they propagate so the caller's unit of
    work rolls back and the match is retried on the next cycle.
    """

    def resolve(self, repo: CricketRepository, normalized: NormalizedMatch) -> ResolvedReferences:
        home = repo.references.upsert_team(normalized.home_team)
        away = repo.references.upsert_team(normalized.away_team)

        if normalized.competition is not None:
            competition = repo.references.upsert_competition(normalized.competition)
        else:
            competition = repo.references.get_default_competition()

        return ResolvedReferences(home=home, away=away, competition=competition)
