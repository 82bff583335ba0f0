"""
CricketData.org (CricAPI v1) provider.

Free-tier keys allow ~100 requests/day, which is why responses are cached
in front of this class (core.cache.snapshot_cache).
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

import requests
from dateutil import parser as date_parser
from tenacity import (
    Retrying,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception,
    before_sleep_log
)

from core.cricket_api.interfaces import CricketApiProvider
from core.utils import is_retryable_http_error
from core.cricket_api.models import (
    ApiResponse, ApiMatch, ApiTeamBrief, ApiCompetitionBrief, ApiCompetition, ApiScore
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.cricapi.com/v1"

INTERNATIONAL_MARKERS = ('world cup', 'test', 'trophy', 'tour')
FRANCHISE_MARKERS = ('ipl', 'bbl', 'cpl', 'psl', 'premier league', 't20 league')


class CricketDataError(Exception):
    """Provider answered with status=failure or an unusable body."""
    pass


def map_status(status: Optional[str], match_started: Optional[bool], match_ended: Optional[bool]) -> str:
    """Map CricAPI free-text status to the provider-neutral vocabulary."""
    status_lower = (status or '').lower()

    if 'abandoned' in status_lower:
        return 'abandoned'
    if 'no result' in status_lower:
        return 'no_result'
    if match_ended:
        return 'completed'
    if 'live' in status_lower or 'in progress' in status_lower:
        return 'live'
    if 'innings break' in status_lower:
        return 'innings_break'
    if 'stumps' in status_lower:
        return 'stumps'
    if 'delayed' in status_lower or 'rain' in status_lower:
        return 'delayed'
    if match_started:
        # In-play text such as "India need 45 runs" or "India opt to bat"
        return 'live'
    if 'toss' in status_lower:
        return 'toss_done'
    return 'scheduled'


def map_format(match_type: Optional[str]) -> str:
    type_lower = (match_type or '').lower()

    if type_lower in ('test', 'odi', 't20i', 't20'):
        return type_lower
    if 'list a' in type_lower:
        return 'list_a'
    if 'first class' in type_lower or 'fc' in type_lower:
        return 'first_class'
    # Franchise leagues report odd types; they are almost always T20
    return 't20'


def infer_competition_type(name: Optional[str]) -> str:
    name_lower = (name or '').lower()
    if any(marker in name_lower for marker in INTERNATIONAL_MARKERS):
        return 'international'
    if any(marker in name_lower for marker in FRANCHISE_MARKERS):
        return 'franchise'
    return 'domestic'


def _parse_gmt(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = date_parser.isoparse(value)
    except (ValueError, OverflowError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _overs_to_decimal(overs: Any) -> float:
    """'19.3' overs is 19 overs and 3 balls, not 19.3."""
    try:
        whole, _, balls = str(overs).partition('.')
        return int(whole or 0) + int(balls or 0) / 6
    except ValueError:
        return 0.0


class CricketDataProvider(CricketApiProvider):
    """
    Client for the CricketData.org API with connection reuse and retry logic.

    Responsibilities:
    - Own a requests.Session for connection reuse
    - Retry transient transport failures (tenacity)
    - Map CricAPI payloads to ApiMatch / ApiCompetition
    """

    name = "cricketdata"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        request_timeout_seconds: int = 15,
        retry_attempts: int = 3,
        retry_wait_seconds: float = 1
    ):
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip('/')
        self.api_key = api_key or ''
        self.request_timeout_seconds = request_timeout_seconds

        self.session = requests.Session()
        self._retrying = Retrying(
            stop=stop_after_attempt(retry_attempts),
            wait=wait_exponential(multiplier=retry_wait_seconds, max=retry_wait_seconds * 4),
            retry=retry_if_exception(is_retryable_http_error),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True
        )

        if not self.api_key:
            logger.warning("CRICKET_API_KEY not set. API calls will fail.")

        logger.info(f"CricketDataProvider initialized: base_url={self.base_url}")

    def _request(self, endpoint: str, params: Dict[str, str]) -> Dict[str, Any]:
        query = {'apikey': self.api_key}
        query.update(params)

        response = self.session.get(
            f"{self.base_url}{endpoint}",
            params=query,
            timeout=self.request_timeout_seconds
        )
        response.raise_for_status()

        body = response.json()
        if not isinstance(body, dict):
            raise CricketDataError(f"Unexpected response body from {endpoint}")
        if body.get('status') == 'failure':
            raise CricketDataError(body.get('reason') or 'API request failed')
        return body

    def _fetch(self, endpoint: str, params: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        return self._retrying(self._request, endpoint, params or {})

    def _fetch_match_list(self, endpoint: str, params: Optional[Dict[str, str]] = None) -> List[Dict[str, Any]]:
        data = self._fetch(endpoint, params).get('data')
        return data if isinstance(data, list) else []

    # --- Mapping ---

    @staticmethod
    def _team_info(raw: Dict[str, Any]) -> Tuple[Dict[str, str], Dict[str, str]]:
        names = raw.get('teams') or []
        infos = raw.get('teamInfo') or []
        if len(names) < 2 and len(infos) >= 2:
            names = [infos[0].get('name'), infos[1].get('name')]
        if len(names) < 2:
            raise CricketDataError(f"Match {raw.get('id')} does not list two teams")

        by_name = {(info.get('name') or '').lower(): info for info in infos}
        sides = []
        for team_name in names[:2]:
            info = by_name.get((team_name or '').lower(), {})
            sides.append({
                'name': team_name,
                'shortname': info.get('shortname') or team_name,
                'img': info.get('img') or None,
            })
        return sides[0], sides[1]

    @staticmethod
    def _team_id_by_name(team_name: Optional[str], home: ApiTeamBrief, away: ApiTeamBrief) -> Optional[str]:
        if not team_name:
            return None
        wanted = team_name.strip().lower()
        for team in (home, away):
            if wanted in ((team.name or '').lower(), (team.short_name or '').lower()):
                return team.id
        return None

    def map_match(self, raw: Dict[str, Any]) -> ApiMatch:
        home_info, away_info = self._team_info(raw)
        home = ApiTeamBrief(
            id=f"team_{home_info['shortname']}",
            name=home_info['name'],
            short_name=home_info['shortname'],
            logo_url=home_info['img'],
        )
        away = ApiTeamBrief(
            id=f"team_{away_info['shortname']}",
            name=away_info['name'],
            short_name=away_info['shortname'],
            logo_url=away_info['img'],
        )

        scores = []
        for index, inning in enumerate(raw.get('score') or []):
            inning_label = inning.get('inning') or ''
            runs = int(inning.get('r') or 0)
            overs = str(inning.get('o') if inning.get('o') is not None else 0)
            overs_decimal = _overs_to_decimal(overs)
            scores.append(ApiScore(
                innings=index + 1,
                team_id=home.id if home.name in inning_label else away.id,
                runs=runs,
                wickets=int(inning.get('w') or 0),
                overs=overs,
                run_rate=round(runs / overs_decimal, 2) if overs_decimal > 0 else None,
            ))

        competition = None
        series_id = raw.get('series_id')
        if series_id:
            # "India vs Australia, 2nd ODI, Australia tour of India, 2023"
            name_parts = (raw.get('name') or '').split(', ')
            series_name = ', '.join(name_parts[2:]) or raw.get('name') or series_id
            competition = ApiCompetitionBrief(
                id=series_id,
                name=series_name,
                type=infer_competition_type(series_name),
            )

        match_ended = bool(raw.get('matchEnded'))
        return ApiMatch(
            id=str(raw.get('id') or ''),
            name=raw.get('name'),
            status=map_status(raw.get('status'), raw.get('matchStarted'), match_ended),
            format=map_format(raw.get('matchType')),
            venue=raw.get('venue'),
            start_time=raw.get('dateTimeGMT') or raw.get('date'),
            home_team=home,
            away_team=away,
            competition=competition,
            toss_winner=self._team_id_by_name(raw.get('tossWinner'), home, away),
            toss_decision=(raw.get('tossChoice') or None),
            winner=self._team_id_by_name(raw.get('matchWinner'), home, away),
            result=raw.get('status') if match_ended else None,
            score=scores,
        )

    def _map_matches(self, raw_matches: List[Dict[str, Any]]) -> List[ApiMatch]:
        matches = []
        for raw in raw_matches:
            try:
                matches.append(self.map_match(raw))
            except (CricketDataError, ValueError) as e:
                logger.warning(f"Skipping unmappable match {raw.get('id')}: {e}")
        return matches

    # --- CricketApiProvider ---

    def get_live_matches(self) -> ApiResponse[List[ApiMatch]]:
        try:
            raw_matches = self._fetch_match_list('/currentMatches', {'offset': '0'})
            live = [m for m in raw_matches if m.get('matchStarted') and not m.get('matchEnded')]
            return ApiResponse.ok(self._map_matches(live))
        except Exception as e:
            logger.error(f"Failed to fetch live matches: {e}")
            return ApiResponse.fail(str(e) or 'Failed to fetch live matches')

    def get_upcoming_matches(self, days: int = 7) -> ApiResponse[List[ApiMatch]]:
        try:
            raw_matches = self._fetch_match_list('/matches', {'offset': '0'})
            now = datetime.now(timezone.utc)
            horizon = now + timedelta(days=days)

            upcoming = []
            for raw in raw_matches:
                start = _parse_gmt(raw.get('dateTimeGMT'))
                if not raw.get('matchStarted') and start is not None and now <= start <= horizon:
                    upcoming.append(raw)
            return ApiResponse.ok(self._map_matches(upcoming))
        except Exception as e:
            logger.error(f"Failed to fetch upcoming matches: {e}")
            return ApiResponse.fail(str(e) or 'Failed to fetch upcoming matches')

    def get_recent_matches(self, days: int = 7) -> ApiResponse[List[ApiMatch]]:
        try:
            raw_matches = self._fetch_match_list('/matches', {'offset': '0'})
            now = datetime.now(timezone.utc)
            since = now - timedelta(days=days)

            recent = []
            for raw in raw_matches:
                start = _parse_gmt(raw.get('dateTimeGMT'))
                if raw.get('matchEnded') and start is not None and since <= start <= now:
                    recent.append(raw)
            return ApiResponse.ok(self._map_matches(recent))
        except Exception as e:
            logger.error(f"Failed to fetch recent matches: {e}")
            return ApiResponse.fail(str(e) or 'Failed to fetch recent matches')

    def get_match_by_id(self, match_id: str) -> ApiResponse[ApiMatch]:
        try:
            raw = self._fetch('/match_info', {'id': match_id}).get('data')
            if not isinstance(raw, dict):
                return ApiResponse.fail(f"Match {match_id} not found")
            return ApiResponse.ok(self.map_match(raw))
        except Exception as e:
            logger.error(f"Failed to fetch match {match_id}: {e}")
            return ApiResponse.fail(str(e) or 'Failed to fetch match')

    def get_competitions(self) -> ApiResponse[List[ApiCompetition]]:
        try:
            series = self._fetch_match_list('/series', {'offset': '0'})
            competitions = [
                ApiCompetition(
                    id=str(s['id']),
                    name=s.get('name') or str(s['id']),
                    type=infer_competition_type(s.get('name')),
                    start_date=s.get('startDate'),
                    end_date=s.get('endDate'),
                )
                for s in series if s.get('id')
            ]
            return ApiResponse.ok(competitions)
        except Exception as e:
            logger.error(f"Failed to fetch competitions: {e}")
            return ApiResponse.fail(str(e) or 'Failed to fetch competitions')

    def close(self) -> None:
        self.session.close()
