"""
Canonical enumerations stored on Match, Competition and Notification rows.
"""
import enum


class MatchStatus(str, enum.Enum):
    SCHEDULED = 'SCHEDULED'
    TOSS_DONE = 'TOSS_DONE'
    LIVE = 'LIVE'
    INNINGS_BREAK = 'INNINGS_BREAK'
    STUMPS = 'STUMPS'
    DELAYED = 'DELAYED'
    ABANDONED = 'ABANDONED'
    COMPLETED = 'COMPLETED'
    NO_RESULT = 'NO_RESULT'

    @property
    def is_pre_match(self) -> bool:
        return self in PRE_MATCH_STATUSES

    @property
    def is_in_play(self) -> bool:
        return self in IN_PLAY_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


PRE_MATCH_STATUSES = frozenset({MatchStatus.SCHEDULED, MatchStatus.TOSS_DONE})
IN_PLAY_STATUSES = frozenset({
    MatchStatus.LIVE,
    MatchStatus.INNINGS_BREAK,
    MatchStatus.STUMPS,
    MatchStatus.DELAYED,
})
TERMINAL_STATUSES = frozenset({
    MatchStatus.COMPLETED,
    MatchStatus.ABANDONED,
    MatchStatus.NO_RESULT,
})


class MatchFormat(str, enum.Enum):
    TEST = 'TEST'
    ODI = 'ODI'
    T20I = 'T20I'
    T20 = 'T20'
    LIST_A = 'LIST_A'
    FIRST_CLASS = 'FIRST_CLASS'


class CompetitionType(str, enum.Enum):
    INTERNATIONAL = 'INTERNATIONAL'
    DOMESTIC = 'DOMESTIC'
    FRANCHISE = 'FRANCHISE'


class NotificationType(str, enum.Enum):
    MATCH_START = 'MATCH_START'
    TOSS_RESULT = 'TOSS_RESULT'
    PLAYING_XI = 'PLAYING_XI'
    MATCH_RESULT = 'MATCH_RESULT'
    INNINGS_BREAK = 'INNINGS_BREAK'
    MILESTONE = 'MILESTONE'


class NotificationChannelType(str, enum.Enum):
    IN_APP = 'IN_APP'
    EMAIL = 'EMAIL'
    PUSH = 'PUSH'


class SyncStatus(str, enum.Enum):
    SUCCESS = 'success'
    ERROR = 'error'
