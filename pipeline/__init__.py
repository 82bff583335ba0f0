"""Pipeline execution modules: poll cycles, reference sync and per-match locking.

Job entry points (pipeline.jobs), the scheduler and the worker launcher are
imported directly by main.py.
"""

from .control import MatchLockManager
from .poller import MatchPoller, PollCycleResult
from .sync import ReferenceSyncService, SyncResult

__all__ = [
    'MatchLockManager',
    'MatchPoller',
    'PollCycleResult',
    'ReferenceSyncService',
    'SyncResult',
]
