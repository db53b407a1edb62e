"""
Source Registry - Construction and ownership of ticker adapters.

Provides:
- Adapter construction by Source
- One live adapter per source, shared by every job that polls it
- Orderly session shutdown
"""

import logging
from typing import Optional

import aiohttp

from data_sources.base import BaseTickerSource
from data_sources.models import Source
from data_sources.providers import BitstampTickerSource, BrtiSource, GdaxSource


logger = logging.getLogger(__name__)


_PROVIDERS: dict[Source, type[BaseTickerSource]] = {
    Source.BITSTAMP: BitstampTickerSource,
    Source.GDAX: GdaxSource,
    Source.BRTI: BrtiSource,
}


def list_supported() -> list[str]:
    """List source names that have an adapter."""
    return [source.value for source in _PROVIDERS]


def create_source(
    source: Source,
    session: Optional[aiohttp.ClientSession] = None,
    timeout: float = BaseTickerSource.DEFAULT_TIMEOUT,
) -> BaseTickerSource:
    """
    Build the adapter for a source.

    Raises:
        ValueError: If no adapter exists for the source
    """
    try:
        provider_class = _PROVIDERS[Source(source)]
    except (KeyError, ValueError) as e:
        raise ValueError(f"Unsupported source: {source}") from e
    return provider_class(timeout=timeout, session=session)


class SourceRegistry:
    """
    Holds the adapters the running process polls.

    Usage:
        async with SourceRegistry(timeout=5.0) as registry:
            gdax = registry.get_or_create(Source.GDAX)
            ticker = await gdax.fetch_ticker()
    """

    def __init__(
        self,
        timeout: float = BaseTickerSource.DEFAULT_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self._timeout = timeout
        self._session = session
        self._sources: dict[Source, BaseTickerSource] = {}

    def register(self, adapter: BaseTickerSource) -> None:
        """Register an adapter instance, replacing any existing one for its source."""
        if adapter.source in self._sources:
            logger.warning(f"Source '{adapter.name}' already registered, replacing")
        self._sources[adapter.source] = adapter
        logger.info(f"Registered source '{adapter.name}'")

    def get_or_create(self, source: Source) -> BaseTickerSource:
        source = Source(source)
        if source not in self._sources:
            self.register(create_source(source, session=self._session, timeout=self._timeout))
        return self._sources[source]

    def get_source(self, source: Source) -> Optional[BaseTickerSource]:
        return self._sources.get(Source(source))

    def list_sources(self) -> list[str]:
        return [source.value for source in self._sources]

    async def close(self) -> None:
        """Close all adapter sessions."""
        for adapter in self._sources.values():
            await adapter.close()
        logger.info(f"Closed {len(self._sources)} source adapters")

    async def __aenter__(self) -> "SourceRegistry":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
