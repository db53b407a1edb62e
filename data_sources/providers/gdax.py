"""
GDAX Market Data Source - Public ticker and candle adapter.

Ticker payload (strings):

    {"price": "36500.12", "time": "2023-11-14T22:13:20.123456Z", ...}

Candle payload (numbers, positional):

    [[time, low, high, open, close], ...]
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

import aiohttp

from data_sources.base import BaseTickerSource
from data_sources.exceptions import FormatError, ParseError
from data_sources.models import (
    CandleRecord,
    CanonicalTicker,
    SeriesKind,
    Source,
    SourceMetadata,
)


logger = logging.getLogger(__name__)


class GdaxSource(BaseTickerSource):
    """
    GDAX public API data source.

    Endpoints used:
    - /products/{product}/ticker - last trade price
    - /products/{product}/candles - historic buckets for a time window
    """

    BASE_URL = "https://api.gdax.com"
    TICKER_PATH = "/products/{product}/ticker"
    CANDLES_PATH = "/products/{product}/candles"
    DEFAULT_PRODUCT = "BTC-USD"
    SOURCE = Source.GDAX

    # Request layout; whole seconds only
    TIME_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

    # Candle row layout
    CANDLE_FIELDS = ("time", "low", "high", "open", "close")

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
            display_name="GDAX",
            source=self.SOURCE,
            base_url=self.BASE_URL,
            default_product=self.DEFAULT_PRODUCT,
            supported_kinds=[SeriesKind.TICKER, SeriesKind.CANDLE],
            documentation_url="https://docs.cloud.coinbase.com/exchange/reference",
            tags=["spot", "exchange", "candles"],
        )

    # =========================================================
    # TICKER
    # =========================================================

    async def fetch_ticker(self, product_id: Optional[str] = None) -> CanonicalTicker:
        product = product_id or self.DEFAULT_PRODUCT
        url = f"{self.BASE_URL}{self.TICKER_PATH.format(product=product)}"
        payload = await self._get_json(url)
        return self.normalize_ticker(payload)

    def normalize_ticker(self, payload: Any) -> CanonicalTicker:
        data = self._require_object(payload)

        price = self._to_float(self._require_field(data, "price"), "price")
        timestamp = self.parse_time(self._require_field(data, "time"))

        return CanonicalTicker(
            source=self.SOURCE,
            timestamp=timestamp,
            price=price,
        )

    def parse_time(self, value: Any) -> int:
        """
        Parse an ISO-8601 UTC time such as 2023-11-14T22:13:20.123456Z.

        Fractional seconds of any length are accepted and truncated.
        """
        if not isinstance(value, str) or not value.endswith("Z"):
            raise FormatError(
                message=f"Field 'time' is not a UTC timestamp: {value!r}",
                source_name=self.name,
                raw_data=value,
                field_name="time",
            )

        main, dot, fraction = value[:-1].partition(".")
        if dot and not fraction.isdigit():
            raise FormatError(
                message=f"Field 'time' has a malformed fraction: {value!r}",
                source_name=self.name,
                raw_data=value,
                field_name="time",
            )

        try:
            parsed = datetime.strptime(main, "%Y-%m-%dT%H:%M:%S")
        except ValueError as e:
            raise FormatError(
                message=f"Field 'time' is not a UTC timestamp: {value!r}",
                source_name=self.name,
                raw_data=value,
                field_name="time",
                original_error=e,
            ) from e

        return int(parsed.replace(tzinfo=timezone.utc).timestamp())

    def format_time(self, timestamp: int) -> str:
        return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime(self.TIME_FORMAT)

    # =========================================================
    # CANDLES
    # =========================================================

    async def fetch_candles(
        self,
        product_id: Optional[str],
        start: int,
        end: int,
    ) -> list[CandleRecord]:
        product = product_id or self.DEFAULT_PRODUCT
        url = f"{self.BASE_URL}{self.CANDLES_PATH.format(product=product)}"
        params = {
            "start": self.format_time(start),
            "end": self.format_time(end),
        }
        payload = await self._get_json(url, params=params)
        candles = self.normalize_candles(payload)

        logger.debug(f"[{self.name}] Fetched {len(candles)} candles for {product} [{start}, {end}]")
        return candles

    def normalize_candles(self, payload: Any) -> list[CandleRecord]:
        """Convert the positional array-of-arrays into CandleRecords, order preserved."""
        if not isinstance(payload, list):
            raise ParseError(
                message=f"Expected JSON array of candles, got {type(payload).__name__}",
                source_name=self.name,
                raw_data=payload,
            )

        candles = []
        for row in payload:
            if not isinstance(row, list) or len(row) < len(self.CANDLE_FIELDS):
                raise ParseError(
                    message=f"Candle row must have {len(self.CANDLE_FIELDS)} entries: {row!r}",
                    source_name=self.name,
                    raw_data=row,
                )
            candles.append(CandleRecord(
                timestamp=self._to_int(row[0], "time"),
                low=self._to_float(row[1], "low"),
                high=self._to_float(row[2], "high"),
                open=self._to_float(row[3], "open"),
                close=self._to_float(row[4], "close"),
            ))

        return candles
