"""
BRTI Source - CME CF Bitcoin Real Time Index adapter.

The index publishes a single value, not a product book:

    {"value": 36512.34, "date": "2023-11-14 22:13:20"}

The date carries no zone and is read as UTC.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Optional

import aiohttp

from data_sources.base import BaseTickerSource
from data_sources.exceptions import FormatError
from data_sources.models import (
    CanonicalTicker,
    SeriesKind,
    Source,
    SourceMetadata,
)


logger = logging.getLogger(__name__)


class BrtiSource(BaseTickerSource):
    """
    CME Group BRTI data source.

    Endpoints used:
    - /CmeWS/mvc/Bitcoin/BRTI?_={unix} - latest index value (cache-busted)
    """

    BASE_URL = "https://www.cmegroup.com"
    INDEX_PATH = "/CmeWS/mvc/Bitcoin/BRTI"
    DEFAULT_PRODUCT = "BRTI"
    DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
    SOURCE = Source.BRTI

    def __init__(
        self,
        timeout: float = BaseTickerSource.DEFAULT_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(timeout, session)
        self._clock = clock

    def metadata(self) -> SourceMetadata:
        """Return provider metadata."""
        return SourceMetadata(
            name=self.name,
            display_name="CME CF Bitcoin Real Time Index",
            source=self.SOURCE,
            base_url=self.BASE_URL,
            default_product=self.DEFAULT_PRODUCT,
            supported_kinds=[SeriesKind.TICKER],
            tags=["index"],
        )

    async def fetch_ticker(self, product_id: Optional[str] = None) -> CanonicalTicker:
        # The index has a single product; product_id is accepted for interface parity
        url = f"{self.BASE_URL}{self.INDEX_PATH}"
        payload = await self._get_json(url, params={"_": int(self._clock())})
        ticker = self.normalize_ticker(payload)

        logger.debug(f"[{self.name}] Fetched price={ticker.price} timestamp={ticker.timestamp}")
        return ticker

    def normalize_ticker(self, payload: Any) -> CanonicalTicker:
        data = self._require_object(payload)

        price = self._to_float(self._require_field(data, "value"), "value")
        date = self._require_field(data, "date")

        try:
            parsed = datetime.strptime(date, self.DATE_FORMAT)
        except (TypeError, ValueError) as e:
            raise FormatError(
                message=f"Field 'date' is not in {self.DATE_FORMAT} layout: {date!r}",
                source_name=self.name,
                raw_data=date,
                field_name="date",
                original_error=e,
            ) from e

        return CanonicalTicker(
            source=self.SOURCE,
            timestamp=int(parsed.replace(tzinfo=timezone.utc).timestamp()),
            price=price,
        )
