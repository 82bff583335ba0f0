"""
Exceptions shared by the polling, ingest and notification pipeline.
"""


class CricketPipelineError(Exception):
    """Base exception for pipeline errors."""
    pass


class ConfigurationError(CricketPipelineError):
    """Raised when the process cannot start with the given configuration."""
    pass


class SnapshotSourceError(CricketPipelineError):
    """Raised when the match snapshot source returns an error envelope."""

    def __init__(self, endpoint: str, message: str):
        super().__init__(f"{endpoint}: {message}")
        self.endpoint = endpoint
        self.message = message


class MalformedSnapshotError(CricketPipelineError):
    """Raised when a single provider snapshot cannot be normalized."""
    pass


class MatchLockTimeout(CricketPipelineError):
    """Raised when the per-match lock could not be acquired in time."""

    def __init__(self, external_id: str):
        super().__init__(f"Timed out waiting for lock on match {external_id}")
        self.external_id = external_id
