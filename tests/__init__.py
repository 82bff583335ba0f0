"""
Test suite utilities.

    # Run all tests
    python -m pytest tests/ -v

Database tests run against in-memory SQLite through the same SQLAlchemy
models (see conftest.py); Redis and HTTP are always mocked.

The builders below return provider-neutral payloads and seed rows with the
minimum of fields each test cares about.
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from core.cricket_api.models import ApiMatch, ApiTeamBrief, ApiCompetitionBrief, ApiScore
from database.models import (
    User, Team, FavoriteTeam, NotificationPreference,
    NotificationType, NotificationChannelType
)

INDIA = ApiTeamBrief(id="team_ind", name="India", short_name="IND", is_national=True)
AUSTRALIA = ApiTeamBrief(id="team_aus", name="Australia", short_name="AUS", is_national=True)
ENGLAND = ApiTeamBrief(id="team_eng", name="England", short_name="ENG", is_national=True)


def api_match(
    match_id: str = "m1",
    status: str = "scheduled",
    home: ApiTeamBrief = INDIA,
    away: ApiTeamBrief = AUSTRALIA,
    toss_winner: Optional[str] = None,
    toss_decision: Optional[str] = None,
    winner: Optional[str] = None,
    result: Optional[str] = None,
    competition: Optional[ApiCompetitionBrief] = None,
    score: Optional[List[ApiScore]] = None,
    start_time: Optional[str] = "2026-03-01T09:30:00Z",
    format: str = "odi",
) -> ApiMatch:
    return ApiMatch(
        id=match_id,
        name=f"{home.name} vs {away.name}",
        status=status,
        format=format,
        venue="Wankhede Stadium",
        city="Mumbai",
        start_time=start_time,
        home_team=home,
        away_team=away,
        competition=competition,
        toss_winner=toss_winner,
        toss_decision=toss_decision,
        winner=winner,
        result=result,
        score=score or [],
    )


def add_user(session, email: Optional[str] = None, name: str = "Fan") -> User:
    user = User(id=uuid.uuid4(), email=email or f"{uuid.uuid4().hex[:8]}@example.com", name=name)
    session.add(user)
    session.flush()
    return user


def add_team(session, external_id: str, name: str) -> Team:
    team = Team(external_id=external_id, name=name)
    session.add(team)
    session.flush()
    return team


def add_favorite(session, user: User, team: Team) -> FavoriteTeam:
    favorite = FavoriteTeam(user_id=user.id, team_id=team.id)
    session.add(favorite)
    session.flush()
    return favorite


def add_preference(
    session,
    user: User,
    notification_type: NotificationType,
    channel: NotificationChannelType,
    enabled: bool = True,
    team: Optional[Team] = None
) -> NotificationPreference:
    pref = NotificationPreference(
        user_id=user.id,
        team_id=team.id if team is not None else None,
        type=notification_type,
        channel=channel,
        enabled=enabled,
    )
    session.add(pref)
    session.flush()
    return pref


def enable_all(session, user: User, channels=(NotificationChannelType.IN_APP, NotificationChannelType.EMAIL)):
    """Global preferences enabled for every notification type on `channels`."""
    for notification_type in NotificationType:
        for channel in channels:
            add_preference(session, user, notification_type, channel, True)


def utc(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)
