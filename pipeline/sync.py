import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List

from core.cricket_api.interfaces import CricketApiProvider
from core.cricket_api.models import ApiCompetition, ApiTeamBrief
from core.exceptions import SnapshotSourceError
from database.models import SyncStatus
from etl.normalizer import CompetitionStub, map_competition_type, parse_date, team_stub

logger = logging.getLogger(__name__)

SYNC_ENDPOINT = "data-sync"


@dataclass
class SyncResult:
    competitions: int = 0
    teams: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors


def competition_stub(competition: ApiCompetition) -> CompetitionStub:
    return CompetitionStub(
        external_id=competition.id,
        name=competition.name or competition.id,
        type=map_competition_type(competition.type),
        short_name=competition.short_name or None,
        country=competition.country or None,
        season=competition.season or None,
        start_date=parse_date(competition.start_date),
        end_date=parse_date(competition.end_date),
        logo_url=competition.logo_url or None,
    )


class ReferenceSyncService:
    """Daily refresh of competitions and teams.

    Competitions come from the provider's series list; teams are collected
    from the live and upcoming match lists. The two halves are independent:
    one failing does not stop the other, and each commits on its own.
    """

    def __init__(self, api: CricketApiProvider, uow_factory: Callable, upcoming_days: int = 30):
        self.api = api
        self.uow_factory = uow_factory
        self.upcoming_days = upcoming_days

    def sync(self) -> SyncResult:
        start = time.time()
        logger.info("Starting reference data sync")
        result = SyncResult()

        try:
            result.competitions = self._sync_competitions()
        except Exception as e:
            logger.error(f"Error syncing competitions: {e}", exc_info=True)
            result.errors.append(f"competitions: {e}")

        try:
            result.teams = self._sync_teams()
        except Exception as e:
            logger.error(f"Error syncing teams: {e}", exc_info=True)
            result.errors.append(f"teams: {e}")

        with self.uow_factory() as repo:
            repo.sync_log.record(
                self.api.name,
                SYNC_ENDPOINT,
                SyncStatus.SUCCESS if result.success else SyncStatus.ERROR,
                records_count=result.competitions + result.teams,
                error_message="; ".join(result.errors) or None,
            )

        logger.info(
            f"Reference data sync finished in {time.time() - start:.2f}s: "
            f"competitions={result.competitions} teams={result.teams} errors={len(result.errors)}"
        )
        return result

    def _sync_competitions(self) -> int:
        response = self.api.get_competitions()
        if not response.success:
            raise SnapshotSourceError("competitions", response.error or "unknown error")

        competitions = response.data or []
        logger.info(f"Found {len(competitions)} competitions")

        with self.uow_factory() as repo:
            for competition in competitions:
                repo.references.upsert_competition(competition_stub(competition))
        return len(competitions)

    def _sync_teams(self) -> int:
        live = self.api.get_live_matches()
        upcoming = self.api.get_upcoming_matches(self.upcoming_days)
        if not live.success and not upcoming.success:
            raise SnapshotSourceError("teams", f"live: {live.error}; upcoming: {upcoming.error}")

        teams: Dict[str, ApiTeamBrief] = {}
        for response in (live, upcoming):
            if not response.success:
                logger.warning(f"Skipping failed match list during team sync: {response.error}")
                continue
            for match in response.data or []:
                for team in (match.home_team, match.away_team):
                    if team.id and team.id not in teams:
                        teams[team.id] = team

        logger.info(f"Found {len(teams)} teams from matches")

        with self.uow_factory() as repo:
            for team in teams.values():
                repo.references.upsert_team(team_stub(team))
        return len(teams)
