"""
Cricket API Provider Interface - Abstract base for match snapshot sources.

Exactly one concrete provider is selected at startup (see factory.py); new
sources implement this interface and register in the factory.
"""
from abc import ABC, abstractmethod
from typing import List

from core.cricket_api.models import ApiResponse, ApiMatch, ApiCompetition


class CricketApiProvider(ABC):
    """
    Abstract Interface for cricket data providers (CricketData.org, CricAPI, ...).

    Every method returns an ApiResponse envelope; transport and payload
    errors are reported through it, never raised.
    """

    name: str = "abstract"

    @abstractmethod
    def get_live_matches(self) -> ApiResponse[List[ApiMatch]]:
        """Matches that have started and not ended."""
        pass

    @abstractmethod
    def get_upcoming_matches(self, days: int = 7) -> ApiResponse[List[ApiMatch]]:
        """Matches not yet started whose start time falls within `days`."""
        pass

    @abstractmethod
    def get_recent_matches(self, days: int = 7) -> ApiResponse[List[ApiMatch]]:
        """Matches that ended within the last `days`."""
        pass

    @abstractmethod
    def get_match_by_id(self, match_id: str) -> ApiResponse[ApiMatch]:
        pass

    @abstractmethod
    def get_competitions(self) -> ApiResponse[List[ApiCompetition]]:
        pass

    def close(self) -> None:
        """Release pooled connections. No-op by default."""
        pass
