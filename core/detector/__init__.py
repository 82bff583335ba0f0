"""Detector Module - match state transition detection."""
from core.detector.models import MatchState, MatchContext, DomainEvent
from core.detector.transitions import detect_transitions

__all__ = ['MatchState', 'MatchContext', 'DomainEvent', 'detect_transitions']
