from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from database.models.enums import MatchStatus, NotificationType


@dataclass(frozen=True)
class MatchState:
    """The slice of a Match the detector diffs. Team ids are canonical ids."""
    status: MatchStatus
    toss_winner_id: Optional[Any] = None
    toss_decision: Optional[str] = None
    winner_id: Optional[Any] = None
    result: Optional[str] = None

    @classmethod
    def from_record(cls, match) -> "MatchState":
        return cls(
            status=MatchStatus(match.status),
            toss_winner_id=match.toss_winner_id,
            toss_decision=match.toss_decision,
            winner_id=match.winner_id,
            result=match.result,
        )


@dataclass(frozen=True)
class MatchContext:
    """Identity and display names needed to render event text."""
    match_id: Any
    external_id: str
    home_team_id: Any
    away_team_id: Any
    home_team_name: str
    away_team_name: str

    @property
    def team_ids(self) -> List[Any]:
        return [self.home_team_id, self.away_team_id]

    def team_name(self, team_id: Any) -> Optional[str]:
        if team_id == self.home_team_id:
            return self.home_team_name
        if team_id == self.away_team_id:
            return self.away_team_name
        return None


@dataclass
class DomainEvent:
    match_id: Any
    type: NotificationType
    title: str
    body: str
    team_ids: List[Any]
    data: Dict[str, Any] = field(default_factory=dict)
