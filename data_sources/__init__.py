"""
Data Sources Package - Pluggable BTC/USD price feed adapters.

Each adapter performs one bounded-timeout GET, converts the feed's own
encoding into a canonical record, and reports failures through a small
exception hierarchy.

Quick Start:
    from data_sources import GdaxSource

    async def poll():
        async with GdaxSource() as gdax:
            ticker = await gdax.fetch_ticker("BTC-USD")
            candles = await gdax.fetch_candles("BTC-USD", start, end)

Adding New Providers:
    1. Create class extending BaseTickerSource
    2. Implement: fetch_ticker(), metadata() (and fetch_candles() if supported)
    3. Add it to the registry's provider map
    4. No changes needed to storage or scheduling
"""

from data_sources.base import BaseTickerSource
from data_sources.exceptions import (
    DataSourceError,
    FormatError,
    NetworkError,
    ParseError,
    UnsupportedOperationError,
)
from data_sources.models import (
    CandleRecord,
    CanonicalTicker,
    SeriesKind,
    Source,
    SourceKind,
    SourceMetadata,
)
from data_sources.providers import BitstampTickerSource, BrtiSource, GdaxSource
from data_sources.registry import SourceRegistry, create_source, list_supported


__version__ = "1.0.0"

__all__ = [
    # Base
    "BaseTickerSource",

    # Models
    "CanonicalTicker",
    "CandleRecord",
    "Source",
    "SeriesKind",
    "SourceKind",
    "SourceMetadata",

    # Exceptions
    "DataSourceError",
    "NetworkError",
    "ParseError",
    "FormatError",
    "UnsupportedOperationError",

    # Providers
    "BitstampTickerSource",
    "BrtiSource",
    "GdaxSource",

    # Registry
    "SourceRegistry",
    "create_source",
    "list_supported",
]
