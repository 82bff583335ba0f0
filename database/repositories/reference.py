import logging
from typing import Any, Dict, Iterable, Optional

from sqlalchemy import select

from database.models import (
    Team, Competition, CompetitionType,
    DEFAULT_COMPETITION_EXTERNAL_ID, DEFAULT_COMPETITION_NAME
)
from database.repositories.base import BaseRepository
from etl.normalizer import TeamStub, CompetitionStub

logger = logging.getLogger(__name__)

COMPETITION_OPTIONAL_FIELDS = ('short_name', 'country', 'season', 'start_date', 'end_date', 'logo_url')


class ReferenceRepository(BaseRepository):
    """Team and Competition upserts keyed on external_id."""

    def get_team(self, external_id: str) -> Optional[Team]:
        stmt = select(Team).where(Team.external_id == external_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_teams_by_ids(self, team_ids: Iterable[Any]) -> Dict[Any, Team]:
        ids = list(team_ids)
        if not ids:
            return {}
        stmt = select(Team).where(Team.id.in_(ids))
        return {team.id: team for team in self.db.execute(stmt).scalars().all()}

    def get_competition(self, external_id: str) -> Optional[Competition]:
        stmt = select(Competition).where(Competition.external_id == external_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def upsert_team(self, stub: TeamStub) -> Team:
        team = self.get_team(stub.external_id)

        if team is None:
            team = Team(
                external_id=stub.external_id,
                name=stub.name,
                short_name=stub.short_name,
                logo_url=stub.logo_url,
                is_national=stub.is_national,
            )
            self.db.add(team)
            self.db.flush()
            logger.info(f"Created team {stub.external_id} ({stub.name})")
            return team

        # Refresh display fields only with non-empty values
        if stub.name and team.name != stub.name:
            team.name = stub.name
        if stub.short_name:
            team.short_name = stub.short_name
        if stub.logo_url:
            team.logo_url = stub.logo_url
        return team

    def upsert_competition(self, stub: CompetitionStub) -> Competition:
        competition = self.get_competition(stub.external_id)

        if competition is None:
            competition = Competition(
                external_id=stub.external_id,
                name=stub.name,
                type=stub.type,
            )
            for attr in COMPETITION_OPTIONAL_FIELDS:
                setattr(competition, attr, getattr(stub, attr))
            self.db.add(competition)
            self.db.flush()
            logger.info(f"Created competition {stub.external_id} ({stub.name})")
            return competition

        if stub.name:
            competition.name = stub.name
        for attr in COMPETITION_OPTIONAL_FIELDS:
            value = getattr(stub, attr)
            if value:
                setattr(competition, attr, value)
        return competition

    def get_default_competition(self) -> Competition:
        """The sentinel competition for matches without a series. Created on first use."""
        competition = self.get_competition(DEFAULT_COMPETITION_EXTERNAL_ID)
        if competition is None:
            competition = Competition(
                external_id=DEFAULT_COMPETITION_EXTERNAL_ID,
                name=DEFAULT_COMPETITION_NAME,
                type=CompetitionType.INTERNATIONAL,
            )
            self.db.add(competition)
            self.db.flush()
        return competition
