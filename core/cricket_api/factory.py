"""Select the one concrete CricketApiProvider named in configuration."""
import logging

from core.config_loader import CricketApiConfig
from core.cricket_api.cricketdata import CricketDataProvider
from core.cricket_api.interfaces import CricketApiProvider
from core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def _build_cricketdata(config: CricketApiConfig) -> CricketApiProvider:
    return CricketDataProvider(
        api_key=config.api_key,
        base_url=config.base_url,
        request_timeout_seconds=config.request_timeout_seconds,
        retry_attempts=config.retry_attempts,
    )


PROVIDERS = {
    'cricketdata': _build_cricketdata,
}


def create_provider(config: CricketApiConfig) -> CricketApiProvider:
    builder = PROVIDERS.get((config.provider or '').lower())
    if builder is None:
        raise ConfigurationError(
            f"Unknown cricket_api.provider {config.provider!r}; expected one of {sorted(PROVIDERS)}"
        )
    provider = builder(config)
    logger.info(f"Using cricket data provider: {provider.name}")
    return provider
