"""
Tests for the CricketData.org provider.

HTTP is mocked at the requests.Session level.
"""
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
import requests

from core.config_loader import CricketApiConfig
from core.cricket_api import CricketDataProvider, create_provider
from core.cricket_api.cricketdata import map_status, map_format, infer_competition_type
from core.exceptions import ConfigurationError


def _iso(dt: datetime) -> str:
    return dt.strftime("%Y-%m-%dT%H:%M:%S")


def raw_match(**overrides):
    raw = {
        "id": "abc-123",
        "name": "India vs Australia, 2nd ODI, Australia tour of India, 2026",
        "matchType": "odi",
        "status": "Match starts at 09:30 GMT",
        "venue": "Wankhede Stadium, Mumbai",
        "dateTimeGMT": _iso(datetime.now(timezone.utc) + timedelta(days=2)),
        "teams": ["India", "Australia"],
        "teamInfo": [
            {"name": "India", "shortname": "IND", "img": "https://img/ind.png"},
            {"name": "Australia", "shortname": "AUS", "img": "https://img/aus.png"},
        ],
        "series_id": "series-1",
        "matchStarted": False,
        "matchEnded": False,
    }
    raw.update(overrides)
    return raw


def response(body, status_code=200):
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = body
    if status_code >= 400:
        error = requests.HTTPError(f"{status_code} error")
        error.response = resp
        resp.raise_for_status.side_effect = error
    else:
        resp.raise_for_status.return_value = None
    return resp


@pytest.fixture
def provider():
    provider = CricketDataProvider(api_key="test-key", retry_attempts=3, retry_wait_seconds=0)
    provider.session = MagicMock()
    return provider


class TestStatusMapping:
    def test_ended_match_is_completed(self):
        assert map_status("Australia won by 5 wkts", True, True) == "completed"

    def test_abandoned_wins_over_ended(self):
        assert map_status("Match abandoned due to rain", True, True) == "abandoned"

    def test_no_result(self):
        assert map_status("No result", True, True) == "no_result"

    def test_in_play_keywords(self):
        assert map_status("Innings Break", True, False) == "innings_break"
        assert map_status("Stumps - Day 2", True, False) == "stumps"
        assert map_status("Rain delayed start", True, False) == "delayed"

    def test_started_without_keyword_is_live(self):
        assert map_status("India need 45 runs in 30 balls", True, False) == "live"

    def test_toss_before_start(self):
        assert map_status("India won the toss and opt to bat", False, False) == "toss_done"

    def test_default_is_scheduled(self):
        assert map_status("Match starts at 09:30 GMT", False, False) == "scheduled"

    def test_format_and_competition_type(self):
        assert map_format("T20I") == "t20i"
        assert map_format("unknown") == "t20"
        assert infer_competition_type("Australia tour of India, 2026") == "international"
        assert infer_competition_type("Indian Premier League 2026") == "franchise"
        assert infer_competition_type("Ranji Trophy") == "international"
        assert infer_competition_type("Sheffield Shield") == "domestic"


class TestMapMatch:
    def test_teams_competition_and_status(self, provider):
        match = provider.map_match(raw_match())

        assert match.id == "abc-123"
        assert match.home_team.id == "team_IND"
        assert match.away_team.logo_url == "https://img/aus.png"
        assert match.status == "scheduled"
        assert match.format == "odi"
        assert match.competition.id == "series-1"
        assert match.competition.name == "Australia tour of India, 2026"
        assert match.competition.type == "international"

    def test_toss_and_winner_resolved_by_name(self, provider):
        match = provider.map_match(raw_match(
            status="Australia won by 5 wkts",
            matchStarted=True,
            matchEnded=True,
            tossWinner="india",
            tossChoice="bat",
            matchWinner="Australia",
        ))

        assert match.status == "completed"
        assert match.toss_winner == "team_IND"
        assert match.toss_decision == "bat"
        assert match.winner == "team_AUS"
        assert match.result == "Australia won by 5 wkts"

    def test_scores_with_run_rate(self, provider):
        match = provider.map_match(raw_match(
            matchStarted=True,
            status="India need 10 runs",
            score=[
                {"inning": "Australia Inning 1", "r": 280, "w": 8, "o": 50},
                {"inning": "India Inning 1", "r": 271, "w": 4, "o": "45.3"},
            ],
        ))

        assert len(match.score) == 2
        assert match.score[1].team_id == "team_IND"
        assert match.score[1].run_rate == round(271 / 45.5, 2)


class TestProviderCalls:
    def test_live_filters_started_not_ended(self, provider):
        provider.session.get.return_value = response({"status": "success", "data": [
            raw_match(id="live-1", matchStarted=True, status="India 120/2"),
            raw_match(id="done-1", matchStarted=True, matchEnded=True),
            raw_match(id="future-1"),
        ]})

        result = provider.get_live_matches()

        assert result.success is True
        assert [m.id for m in result.data] == ["live-1"]
        _, kwargs = provider.session.get.call_args
        assert kwargs["params"]["apikey"] == "test-key"

    def test_upcoming_window(self, provider):
        far = _iso(datetime.now(timezone.utc) + timedelta(days=20))
        provider.session.get.return_value = response({"status": "success", "data": [
            raw_match(id="soon"),
            raw_match(id="later", dateTimeGMT=far),
        ]})

        result = provider.get_upcoming_matches(days=7)

        assert [m.id for m in result.data] == ["soon"]

    def test_failure_body_returns_error_envelope(self, provider):
        provider.session.get.return_value = response({"status": "failure", "reason": "Invalid API key"})

        result = provider.get_live_matches()

        assert result.success is False
        assert "Invalid API key" in result.error

    def test_server_error_is_retried_then_reported(self, provider):
        provider.session.get.return_value = response({}, status_code=503)

        result = provider.get_live_matches()

        assert result.success is False
        assert provider.session.get.call_count == 3

    def test_client_error_is_not_retried(self, provider):
        provider.session.get.return_value = response({}, status_code=401)

        result = provider.get_competitions()

        assert result.success is False
        assert provider.session.get.call_count == 1

    def test_timeout_is_retried(self, provider):
        provider.session.get.side_effect = [
            requests.Timeout("slow"),
            response({"status": "success", "data": {**raw_match(), "id": "abc-123"}}),
        ]

        result = provider.get_match_by_id("abc-123")

        assert result.success is True
        assert result.data.id == "abc-123"

    def test_unmappable_match_is_skipped(self, provider):
        provider.session.get.return_value = response({"status": "success", "data": [
            raw_match(id="ok", matchStarted=True),
            raw_match(id="bad", matchStarted=True, teams=["Solo"], teamInfo=[]),
        ]})

        result = provider.get_live_matches()

        assert [m.id for m in result.data] == ["ok"]

    def test_competitions(self, provider):
        provider.session.get.return_value = response({"status": "success", "data": [
            {"id": "s1", "name": "Indian Premier League 2026", "startDate": "2026-03-20", "endDate": "May 25"},
        ]})

        result = provider.get_competitions()

        assert result.data[0].type == "franchise"
        assert result.data[0].start_date == "2026-03-20"


class TestFactory:
    def test_creates_configured_provider(self):
        provider = create_provider(CricketApiConfig(api_key="k"))
        assert isinstance(provider, CricketDataProvider)

    def test_unknown_provider_is_a_configuration_error(self):
        with pytest.raises(ConfigurationError):
            create_provider(CricketApiConfig(provider="cricbuzz"))
