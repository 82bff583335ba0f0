import logging
from datetime import datetime, timezone

import requests

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_retryable_http_error(exc: Exception) -> bool:
    """
    Determine if an HTTP exception is worth retrying.

    Only retries on:
    - Timeouts
    - Server errors (5xx) and 429 rate limiting
    - Connection errors without a response

    Does NOT retry on other client errors (4xx).
    """
    if isinstance(exc, requests.Timeout):
        return True

    if isinstance(exc, requests.RequestException):
        response = getattr(exc, 'response', None)
        if response is None:
            return True
        return response.status_code >= 500 or response.status_code == 429

    return False
