"""
Bitstamp Ticker Source - Public hourly ticker adapter.

Bitstamp transmits every numeric field as a string:

    {"timestamp": "1700000000", "last": "36500.12",
     "low": "36100.00", "high": "36800.55", ...}
"""

import logging
from typing import Any, Optional

import aiohttp

from data_sources.base import BaseTickerSource
from data_sources.models import (
    CanonicalTicker,
    SeriesKind,
    Source,
    SourceMetadata,
)


logger = logging.getLogger(__name__)


class BitstampTickerSource(BaseTickerSource):
    """
    Bitstamp public API data source.

    Endpoints used:
    - /api/v2/ticker_hour/{product}/ - last price plus the hourly low/high
    """

    BASE_URL = "https://www.bitstamp.net"
    TICKER_PATH = "/api/v2/ticker_hour/{product}/"
    DEFAULT_PRODUCT = "btcusd"
    SOURCE = Source.BITSTAMP

    def __init__(
        self,
        timeout: float = BaseTickerSource.DEFAULT_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        super().__init__(timeout, session)

    def metadata(self) -> SourceMetadata:
        """Return provider metadata."""
        return SourceMetadata(
            name=self.name,
            display_name="Bitstamp Hourly Ticker",
            source=self.SOURCE,
            base_url=self.BASE_URL,
            default_product=self.DEFAULT_PRODUCT,
            supported_kinds=[SeriesKind.TICKER],
            documentation_url="https://www.bitstamp.net/api/",
            tags=["spot", "exchange"],
        )

    async def fetch_ticker(self, product_id: Optional[str] = None) -> CanonicalTicker:
        product = product_id or self.DEFAULT_PRODUCT
        url = f"{self.BASE_URL}{self.TICKER_PATH.format(product=product)}"
        payload = await self._get_json(url)
        return self.normalize_ticker(payload)

    def normalize_ticker(self, payload: Any) -> CanonicalTicker:
        """Convert the string-encoded hourly ticker into a CanonicalTicker."""
        data = self._require_object(payload)

        return CanonicalTicker(
            source=self.SOURCE,
            timestamp=self._to_int(self._require_field(data, "timestamp"), "timestamp"),
            price=self._to_float(self._require_field(data, "last"), "last"),
            low=self._to_float(self._require_field(data, "low"), "low"),
            high=self._to_float(self._require_field(data, "high"), "high"),
        )
