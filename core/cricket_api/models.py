"""
Provider-neutral payloads returned by every CricketApiProvider.

Vocabularies are the lowercase ones providers map into ('scheduled',
'toss_done', 'odi', 'franchise', ...). They are mapped onto the canonical
enums by etl.normalizer, which tolerates values outside these sets.
"""
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")

API_MATCH_STATUSES = (
    'scheduled', 'toss_done', 'live', 'innings_break', 'stumps',
    'delayed', 'abandoned', 'completed', 'no_result',
)
API_MATCH_FORMATS = ('test', 'odi', 't20i', 't20', 'list_a', 'first_class')
API_COMPETITION_TYPES = ('international', 'domestic', 'franchise')


class ApiTeamBrief(BaseModel):
    id: str
    name: str
    short_name: Optional[str] = None
    logo_url: Optional[str] = None
    is_national: bool = False


class ApiCompetitionBrief(BaseModel):
    id: str
    name: str
    type: str = 'international'


class ApiScore(BaseModel):
    innings: int
    team_id: Optional[str] = None
    runs: int = 0
    wickets: int = 0
    overs: str = "0"
    run_rate: Optional[float] = None
    target: Optional[int] = None


class ApiMatch(BaseModel):
    id: str
    name: Optional[str] = None
    status: str = 'scheduled'
    format: str = 't20'
    venue: Optional[str] = None
    city: Optional[str] = None
    start_time: Optional[str] = None  # ISO-8601
    end_time: Optional[str] = None

    home_team: ApiTeamBrief
    away_team: ApiTeamBrief
    competition: Optional[ApiCompetitionBrief] = None

    toss_winner: Optional[str] = None  # team id
    toss_decision: Optional[str] = None
    winner: Optional[str] = None  # team id
    result: Optional[str] = None

    score: List[ApiScore] = Field(default_factory=list)


class ApiCompetition(BaseModel):
    id: str
    name: str
    short_name: Optional[str] = None
    type: str = 'international'
    country: Optional[str] = None
    season: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    logo_url: Optional[str] = None


class ApiResponse(BaseModel, Generic[T]):
    """Success/error envelope. Providers never raise to their callers."""
    success: bool
    data: Optional[T] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, data) -> "ApiResponse":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "ApiResponse":
        return cls(success=False, error=error)
