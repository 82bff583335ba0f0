"""
Snapshot Normalizer.

Maps a provider-neutral ApiMatch onto the canonical Match shape. Vocabulary
mapping is an explicit lookup per enum; anything unrecognized falls back to a
conservative default instead of raising.
"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Dict, Optional

from dateutil import parser as date_parser

from core.cricket_api.models import ApiMatch, ApiTeamBrief, ApiCompetitionBrief, ApiScore
from core.exceptions import MalformedSnapshotError
from database.models.enums import MatchStatus, MatchFormat, CompetitionType

logger = logging.getLogger(__name__)

STATUS_LOOKUP: Dict[str, MatchStatus] = {
    'scheduled': MatchStatus.SCHEDULED,
    'toss_done': MatchStatus.TOSS_DONE,
    'live': MatchStatus.LIVE,
    'innings_break': MatchStatus.INNINGS_BREAK,
    'stumps': MatchStatus.STUMPS,
    'delayed': MatchStatus.DELAYED,
    'abandoned': MatchStatus.ABANDONED,
    'completed': MatchStatus.COMPLETED,
    'no_result': MatchStatus.NO_RESULT,
}

FORMAT_LOOKUP: Dict[str, MatchFormat] = {
    'test': MatchFormat.TEST,
    'odi': MatchFormat.ODI,
    't20i': MatchFormat.T20I,
    't20': MatchFormat.T20,
    'list_a': MatchFormat.LIST_A,
    'first_class': MatchFormat.FIRST_CLASS,
}

COMPETITION_TYPE_LOOKUP: Dict[str, CompetitionType] = {
    'international': CompetitionType.INTERNATIONAL,
    'domestic': CompetitionType.DOMESTIC,
    'franchise': CompetitionType.FRANCHISE,
}

TOSS_DECISION_LOOKUP: Dict[str, str] = {
    'bat': 'bat',
    'batting': 'bat',
    'field': 'field',
    'fielding': 'field',
    'bowl': 'field',
    'bowling': 'field',
}

DEFAULT_STATUS = MatchStatus.SCHEDULED
DEFAULT_FORMAT = MatchFormat.T20
DEFAULT_COMPETITION_TYPE = CompetitionType.INTERNATIONAL


@dataclass(frozen=True)
class TeamStub:
    external_id: str
    name: str
    short_name: Optional[str] = None
    logo_url: Optional[str] = None
    is_national: bool = False


@dataclass(frozen=True)
class CompetitionStub:
    external_id: str
    name: str
    type: CompetitionType = DEFAULT_COMPETITION_TYPE
    short_name: Optional[str] = None
    country: Optional[str] = None
    season: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    logo_url: Optional[str] = None


@dataclass
class NormalizedMatch:
    """
    Canonical match snapshot. Team references are still external ids; the
    Reference Resolver turns them into canonical ids.
    """
    external_id: str
    home_team: TeamStub
    away_team: TeamStub
    start_time: datetime
    status: MatchStatus = DEFAULT_STATUS
    format: MatchFormat = DEFAULT_FORMAT
    name: Optional[str] = None
    competition: Optional[CompetitionStub] = None
    venue: Optional[str] = None
    city: Optional[str] = None
    end_time: Optional[datetime] = None
    toss_winner_external_id: Optional[str] = None
    toss_decision: Optional[str] = None
    winner_external_id: Optional[str] = None
    result: Optional[str] = None
    current_score: Optional[str] = None
    current_overs: Optional[str] = None
    current_run_rate: Optional[float] = None
    warnings: list = field(default_factory=list)


def _lookup(table: Dict, value: Optional[str], default, label: str, warnings: list):
    key = (value or '').strip().lower()
    if key in table:
        return table[key]
    if key:
        warnings.append(f"unknown {label} {value!r}")
    return default


def map_status(value: Optional[str]) -> MatchStatus:
    return _lookup(STATUS_LOOKUP, value, DEFAULT_STATUS, 'status', [])


def map_format(value: Optional[str]) -> MatchFormat:
    return _lookup(FORMAT_LOOKUP, value, DEFAULT_FORMAT, 'format', [])


def map_competition_type(value: Optional[str]) -> CompetitionType:
    return _lookup(COMPETITION_TYPE_LOOKUP, value, DEFAULT_COMPETITION_TYPE, 'competition type', [])


def map_toss_decision(value: Optional[str]) -> Optional[str]:
    return _lookup(TOSS_DECISION_LOOKUP, value, None, 'toss decision', [])


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a provider timestamp; naive values are taken as UTC."""
    if not value:
        return None
    try:
        parsed = date_parser.parse(value)
    except (ValueError, OverflowError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_date(value: Optional[str]) -> Optional[date]:
    parsed = parse_timestamp(value)
    return parsed.date() if parsed else None


def team_stub(team: ApiTeamBrief) -> TeamStub:
    if not team.id:
        raise MalformedSnapshotError("team without id")
    return TeamStub(
        external_id=team.id,
        name=team.name or team.short_name or team.id,
        short_name=team.short_name or None,
        logo_url=team.logo_url or None,
        is_national=team.is_national,
    )


def _competition_stub(competition: Optional[ApiCompetitionBrief], warnings: list) -> Optional[CompetitionStub]:
    if competition is None or not competition.id:
        return None
    return CompetitionStub(
        external_id=competition.id,
        name=competition.name or competition.id,
        type=_lookup(COMPETITION_TYPE_LOOKUP, competition.type, DEFAULT_COMPETITION_TYPE,
                     'competition type', warnings),
    )


def _latest_innings(scores) -> Optional[ApiScore]:
    if not scores:
        return None
    return max(scores, key=lambda s: s.innings)


def _team_ref(value: Optional[str], home: TeamStub, away: TeamStub, label: str, warnings: list) -> Optional[str]:
    """Team references must point at one of the two sides; anything else is dropped."""
    if not value:
        return None
    if value in (home.external_id, away.external_id):
        return value
    warnings.append(f"{label} {value!r} is not a team in this match")
    return None


def normalize_match(api_match: ApiMatch) -> NormalizedMatch:
    """
    Map a provider snapshot into a NormalizedMatch. Pure.

    Raises:
        MalformedSnapshotError: missing id, unparsable start time, or the
            same team on both sides. Unknown vocabulary never raises.
    """
    if not api_match.id:
        raise MalformedSnapshotError("snapshot without match id")

    start_time = parse_timestamp(api_match.start_time)
    if start_time is None:
        raise MalformedSnapshotError(
            f"match {api_match.id}: unparsable start time {api_match.start_time!r}"
        )

    home = team_stub(api_match.home_team)
    away = team_stub(api_match.away_team)
    if home.external_id == away.external_id:
        raise MalformedSnapshotError(
            f"match {api_match.id}: home and away team are both {home.external_id}"
        )

    warnings = []
    innings = _latest_innings(api_match.score)

    normalized = NormalizedMatch(
        external_id=api_match.id,
        name=api_match.name,
        home_team=home,
        away_team=away,
        competition=_competition_stub(api_match.competition, warnings),
        status=_lookup(STATUS_LOOKUP, api_match.status, DEFAULT_STATUS, 'status', warnings),
        format=_lookup(FORMAT_LOOKUP, api_match.format, DEFAULT_FORMAT, 'format', warnings),
        venue=api_match.venue or None,
        city=api_match.city or None,
        start_time=start_time,
        end_time=parse_timestamp(api_match.end_time),
        toss_winner_external_id=_team_ref(api_match.toss_winner, home, away, 'toss winner', warnings),
        toss_decision=_lookup(TOSS_DECISION_LOOKUP, api_match.toss_decision, None, 'toss decision', warnings),
        winner_external_id=_team_ref(api_match.winner, home, away, 'winner', warnings),
        result=api_match.result or None,
        current_score=f"{innings.runs}/{innings.wickets}" if innings else None,
        current_overs=innings.overs if innings else None,
        current_run_rate=innings.run_rate if innings else None,
        warnings=warnings,
    )

    for warning in warnings:
        logger.warning(f"Match {api_match.id}: {warning}, using default")

    return normalized
