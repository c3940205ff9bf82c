"""
News provider adapters for Consumer Pulse.

Providers form a closed set registered in ``ADAPTERS``; the scheduler
dispatches through the ``ProviderAdapter`` interface only.
"""
from typing import Iterable, Optional

import httpx
import structlog

from pulse_news.config import Settings
from pulse_news.services.ingestion.base import ProviderConfig
from pulse_news.services.ingestion.errors import UnknownProviderError
from pulse_news.sources.base import ProviderAdapter
from pulse_news.sources.currents import CurrentsAdapter, create_currents_config
from pulse_news.sources.finlight import FinlightAdapter, create_finlight_config
from pulse_news.sources.newsapi import NewsAPIAdapter, create_newsapi_config
from pulse_news.sources.newsdata import NewsDataAdapter, create_newsdata_config

logger = structlog.get_logger(__name__)

ADAPTERS: dict[str, type[ProviderAdapter]] = {
    "newsdata": NewsDataAdapter,
    "newsapi": NewsAPIAdapter,
    "finlight": FinlightAdapter,
    "currents": CurrentsAdapter,
}


def build_provider_configs(settings: Settings) -> list[ProviderConfig]:
    """Provider configurations for every provider with credentials."""
    configs = [
        create_newsdata_config(settings.newsdata_api_key),
        create_newsapi_config(settings.newsapi_key),
        create_finlight_config(settings.finlight_api_key),
        create_currents_config(settings.currents_api_key),
    ]

    enabled = []
    for config in configs:
        if config.api_key:
            enabled.append(config)
        else:
            logger.info("Provider disabled, no API key", provider=config.name)
    return enabled


def build_adapters(
    configs: Iterable[ProviderConfig],
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> dict[str, ProviderAdapter]:
    """Instantiate one adapter per configured provider."""
    adapters = {}
    for config in configs:
        try:
            adapter_cls = ADAPTERS[config.name]
        except KeyError:
            raise UnknownProviderError(f"No adapter registered for {config.name}") from None
        adapters[config.name] = adapter_cls(config, transport=transport)
    return adapters


__all__ = [
    "ADAPTERS",
    "ProviderAdapter",
    "NewsDataAdapter",
    "NewsAPIAdapter",
    "FinlightAdapter",
    "CurrentsAdapter",
    "build_adapters",
    "build_provider_configs",
]
