"""
Tests for the Notification Fan-out Engine.
"""
import uuid
from types import SimpleNamespace

import pytest

from core.detector import DomainEvent
from database.models import Notification, NotificationType, NotificationChannelType
from notification.fanout import NotificationFanoutService, resolve_enabled_channels
from notification.tracker import generate_dedup_key
from tests import add_user, add_team, add_favorite, add_preference, enable_all

IN_APP = NotificationChannelType.IN_APP
EMAIL = NotificationChannelType.EMAIL


def pref(user_id, channel, enabled, team_id=None):
    return SimpleNamespace(user_id=user_id, channel=channel, enabled=enabled, team_id=team_id)


class TestResolveEnabledChannels:
    def test_no_rows_means_disabled(self):
        assert resolve_enabled_channels([], {uuid.uuid4(): {uuid.uuid4()}}) == {}

    def test_channels_are_independent(self):
        user = uuid.uuid4()
        enabled = resolve_enabled_channels(
            [pref(user, IN_APP, True), pref(user, EMAIL, False)], {user: {uuid.uuid4()}}
        )

        assert enabled[user] == {IN_APP}

    def test_team_scoped_row_overrides_global(self):
        user, team = uuid.uuid4(), uuid.uuid4()
        enabled = resolve_enabled_channels(
            [pref(user, EMAIL, True), pref(user, EMAIL, False, team_id=team)],
            {user: {team}},
        )

        assert EMAIL not in enabled.get(user, set())

    def test_scoped_row_for_other_team_is_ignored(self):
        user = uuid.uuid4()
        enabled = resolve_enabled_channels(
            [pref(user, EMAIL, True), pref(user, EMAIL, False, team_id=uuid.uuid4())],
            {user: {uuid.uuid4()}},
        )

        assert enabled[user] == {EMAIL}

    def test_scoped_row_for_unfollowed_opponent_is_ignored(self):
        # follows India only; a stale disabled row for Australia must not mute India vs Australia
        user, india, australia = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
        enabled = resolve_enabled_channels(
            [pref(user, EMAIL, True), pref(user, EMAIL, False, team_id=australia)],
            {user: {india}},
        )

        assert enabled[user] == {EMAIL}

    def test_any_enabled_scoped_row_wins(self):
        user, home, away = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
        enabled = resolve_enabled_channels(
            [pref(user, IN_APP, False, team_id=home), pref(user, IN_APP, True, team_id=away)],
            {user: {home, away}},
        )

        assert enabled[user] == {IN_APP}


@pytest.mark.db
class TestFanOut:
    @pytest.fixture
    def teams(self, session):
        return add_team(session, "team_ind", "India"), add_team(session, "team_aus", "Australia")

    def event(self, teams, match_id=None, event_type=NotificationType.MATCH_START):
        match_id = match_id or uuid.uuid4()
        return DomainEvent(
            match_id=match_id,
            type=event_type,
            title="India vs Australia - Match Started!",
            body="The match has begun. Follow live updates!",
            team_ids=[t.id for t in teams],
            data={"matchId": str(match_id), "externalId": "m1"},
        )

    def rows(self, session):
        return session.query(Notification).all()

    def test_audience_is_distinct_followers(self, session, repo, teams):
        india, australia = teams
        both = add_user(session)
        aus = add_user(session)
        add_user(session)  # follows nobody
        for user, followed in ((both, (india, australia)), (aus, (australia,))):
            enable_all(session, user, channels=(IN_APP,))
            for team in followed:
                add_favorite(session, user, team)

        result = NotificationFanoutService().fan_out(repo, self.event(teams))

        assert result.audience == 2
        assert result.created == 2
        assert sorted(n.user_id for n in self.rows(session)) == sorted([both.id, aus.id])

    def test_disabled_channel_creates_nothing_for_it(self, session, repo, teams):
        user = add_user(session)
        add_favorite(session, user, teams[0])
        add_preference(session, user, NotificationType.MATCH_START, IN_APP, True)
        add_preference(session, user, NotificationType.MATCH_START, EMAIL, False)

        NotificationFanoutService().fan_out(repo, self.event(teams))

        assert [n.channel for n in self.rows(session)] == [IN_APP]

    def test_opponent_scoped_row_does_not_mute_followed_team(self, session, repo, teams):
        india, australia = teams
        user = add_user(session)
        add_favorite(session, user, india)
        add_preference(session, user, NotificationType.MATCH_START, EMAIL, True)
        add_preference(session, user, NotificationType.MATCH_START, EMAIL, False, team=australia)

        result = NotificationFanoutService().fan_out(repo, self.event(teams))

        assert result.audience == 1
        assert result.created == 1
        assert [n.channel for n in self.rows(session)] == [EMAIL]

    def test_followed_team_scoped_row_still_overrides(self, session, repo, teams):
        india, _ = teams
        user = add_user(session)
        add_favorite(session, user, india)
        add_preference(session, user, NotificationType.MATCH_START, EMAIL, True)
        add_preference(session, user, NotificationType.MATCH_START, EMAIL, False, team=india)

        result = NotificationFanoutService().fan_out(repo, self.event(teams))

        assert result.created == 0

    def test_other_types_preferences_do_not_apply(self, session, repo, teams):
        user = add_user(session)
        add_favorite(session, user, teams[0])
        add_preference(session, user, NotificationType.TOSS_RESULT, IN_APP, True)

        result = NotificationFanoutService().fan_out(repo, self.event(teams))

        assert result.audience == 1
        assert result.created == 0

    def test_rerun_is_idempotent(self, session, repo, teams):
        user = add_user(session)
        add_favorite(session, user, teams[0])
        enable_all(session, user)
        event = self.event(teams)
        service = NotificationFanoutService()

        first = service.fan_out(repo, event)
        second = service.fan_out(repo, event)

        assert first.created == 2
        assert second.created == 0
        assert second.duplicates == 2
        assert len(self.rows(session)) == 2

    def test_email_row_carries_address_and_dedup_key(self, session, repo, teams):
        user = add_user(session, "fan@example.com")
        add_favorite(session, user, teams[1])
        add_preference(session, user, NotificationType.MATCH_START, EMAIL, True)
        event = self.event(teams)

        NotificationFanoutService().fan_out(repo, event)

        row = self.rows(session)[0]
        assert row.data["email"] == "fan@example.com"
        assert row.data["matchId"] == str(event.match_id)
        assert row.sent_at is None
        assert row.read is False
        assert row.dedup_key == generate_dedup_key(user.id, event.match_id, NotificationType.MATCH_START, EMAIL)

    def test_push_is_never_materialized(self, session, repo, teams):
        user = add_user(session)
        add_favorite(session, user, teams[0])
        enable_all(session, user, channels=(IN_APP, EMAIL, NotificationChannelType.PUSH))

        service = NotificationFanoutService(channels=["IN_APP", "EMAIL", "PUSH"])
        result = service.fan_out(repo, self.event(teams))

        assert service.channels == [IN_APP, EMAIL]
        assert result.created == 2

    def test_configured_channels_limit_output(self, session, repo, teams):
        user = add_user(session)
        add_favorite(session, user, teams[0])
        enable_all(session, user)

        NotificationFanoutService(channels=["IN_APP"]).fan_out(repo, self.event(teams))

        assert [n.channel for n in self.rows(session)] == [IN_APP]

    def test_no_followers(self, repo, teams):
        result = NotificationFanoutService().fan_out(repo, self.event(teams))

        assert result.audience == 0
        assert result.created == 0


class TestDedupKey:
    def test_stable_and_distinct(self):
        user, match = uuid.uuid4(), uuid.uuid4()
        key = generate_dedup_key(user, match, NotificationType.MATCH_START, EMAIL)

        assert key == generate_dedup_key(user, match, "MATCH_START", "EMAIL")
        assert key != generate_dedup_key(user, match, NotificationType.MATCH_START, IN_APP)
        assert len(key) == 32
