"""Cricket API Module - match snapshot source abstraction and providers."""
from core.cricket_api.interfaces import CricketApiProvider
from core.cricket_api.models import (
    ApiResponse, ApiMatch, ApiTeamBrief, ApiCompetitionBrief, ApiScore, ApiCompetition
)
from core.cricket_api.cricketdata import CricketDataProvider
from core.cricket_api.factory import create_provider

__all__ = [
    'CricketApiProvider',
    'ApiResponse',
    'ApiMatch',
    'ApiTeamBrief',
    'ApiCompetitionBrief',
    'ApiScore',
    'ApiCompetition',
    'CricketDataProvider',
    'create_provider',
]
