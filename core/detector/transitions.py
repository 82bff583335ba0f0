"""
Transition Detector.

Derives notification-worthy events by comparing the last persisted state of a
match with the state about to be written. Comparisons are field-level, so a
skipped intermediate poll (e.g. the provider never reporting TOSS_DONE) still
yields the toss event once the toss winner first appears.
"""
import logging
from typing import List, Optional

from core.detector.models import DomainEvent, MatchContext, MatchState
from database.models.enums import MatchStatus, NotificationType

logger = logging.getLogger(__name__)


def _event(context: MatchContext, event_type: NotificationType, title: str, body: str, **extra) -> DomainEvent:
    data = {'matchId': str(context.match_id), 'externalId': context.external_id}
    data.update({k: v for k, v in extra.items() if v is not None})
    return DomainEvent(
        match_id=context.match_id,
        type=event_type,
        title=title,
        body=body,
        team_ids=context.team_ids,
        data=data,
    )


def _match_start(previous: MatchState, current: MatchState, context: MatchContext) -> Optional[DomainEvent]:
    if previous.status != MatchStatus.SCHEDULED or current.status != MatchStatus.LIVE:
        return None
    return _event(
        context,
        NotificationType.MATCH_START,
        f"{context.home_team_name} vs {context.away_team_name} - Match Started!",
        "The match has begun. Follow live updates!",
    )


def _toss_result(previous: MatchState, current: MatchState, context: MatchContext) -> Optional[DomainEvent]:
    if previous.toss_winner_id is not None or current.toss_winner_id is None:
        return None

    winner = context.team_name(current.toss_winner_id) or "Unknown team"
    if current.toss_decision:
        body = f"{winner} won the toss and chose to {current.toss_decision}"
    else:
        body = f"{winner} won the toss"
    return _event(
        context,
        NotificationType.TOSS_RESULT,
        f"Toss Result: {winner} won",
        body,
        tossWinner=winner,
        tossDecision=current.toss_decision,
    )


def _match_result(previous: MatchState, current: MatchState, context: MatchContext) -> Optional[DomainEvent]:
    # Corrections to an already COMPLETED match never re-notify
    if previous.status == MatchStatus.COMPLETED or current.status != MatchStatus.COMPLETED:
        return None
    if current.winner_id is None:
        return None

    winner = context.team_name(current.winner_id) or "Unknown team"
    return _event(
        context,
        NotificationType.MATCH_RESULT,
        f"Match Result: {winner} won!",
        current.result or f"{winner} has won the match",
        winner=winner,
    )


def _innings_break(previous: MatchState, current: MatchState, context: MatchContext) -> Optional[DomainEvent]:
    if previous.status == MatchStatus.INNINGS_BREAK or current.status != MatchStatus.INNINGS_BREAK:
        return None
    return _event(
        context,
        NotificationType.INNINGS_BREAK,
        "Innings Break",
        "First innings completed. Second innings to follow.",
    )


# Evaluation order is the emission order
RULES = (_match_start, _toss_result, _match_result, _innings_break)


def detect_transitions(
    previous: Optional[MatchState],
    current: MatchState,
    context: MatchContext
) -> List[DomainEvent]:
    """
    Compute the events implied by moving from `previous` to `current`.

    A first observation (`previous is None`) yields no events: there is no
    "before" to diff against, and a match discovered mid-play must not flood
    its followers.
    """
    if previous is None:
        logger.debug(f"First observation of match {context.external_id}, no transitions")
        return []

    events = []
    for rule in RULES:
        event = rule(previous, current, context)
        if event is not None:
            events.append(event)

    if events:
        logger.info(
            f"Match {context.external_id}: {previous.status.value} -> {current.status.value}, "
            f"events={[e.type.value for e in events]}"
        )
    return events
