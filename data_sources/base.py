"""
Base Ticker Source - Abstract interface for all price feeds.

All providers MUST implement this interface so that:
- New feeds plug in without touching storage or scheduling
- Wire formats never leak past the adapter
- Every failure surfaces as a DataSourceError subtype

A request is a single bounded-timeout GET. There is no retry here:
the scheduler simply tries again on its next tick.
"""

import asyncio
import json
import logging
import math
import time
from abc import ABC, abstractmethod
from typing import Any, Optional

import aiohttp

from data_sources.exceptions import (
    FormatError,
    NetworkError,
    ParseError,
    UnsupportedOperationError,
)
from data_sources.models import (
    CandleRecord,
    CanonicalTicker,
    Source,
    SourceMetadata,
)


logger = logging.getLogger(__name__)


class BaseTickerSource(ABC):
    """
    Abstract base class for all ticker sources.

    Each implementation must:
    1. Implement fetch_ticker() - one GET, normalized to CanonicalTicker
    2. Implement metadata() - return provider metadata
    3. Optionally override fetch_candles() for historic buckets

    Features:
    - Owned or injected aiohttp session
    - Per-request timeout (5s by default)
    - Uniform error mapping to NetworkError / ParseError / FormatError
    """

    DEFAULT_TIMEOUT = 5.0
    SOURCE: Source

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self._timeout = timeout
        self._session = session
        self._owns_session = session is None
        self._request_count = 0
        self._error_count = 0

    @property
    def name(self) -> str:
        """Unique identifier for this data source."""
        return self.SOURCE.value

    @property
    def source(self) -> Source:
        return self.SOURCE

    @abstractmethod
    def metadata(self) -> SourceMetadata:
        """Return provider metadata."""
        pass

    @abstractmethod
    async def fetch_ticker(self, product_id: Optional[str] = None) -> CanonicalTicker:
        """
        Fetch the current ticker for a product.

        Raises:
            NetworkError: connection, timeout or non-2xx status
            ParseError: body is not JSON or a required field is missing
            FormatError: a field could not be converted to a number/timestamp
        """
        pass

    async def fetch_candles(
        self,
        product_id: Optional[str],
        start: int,
        end: int,
    ) -> list[CandleRecord]:
        """
        Fetch historic buckets in [start, end].

        Records are returned in the order the provider sent them.
        """
        raise UnsupportedOperationError(
            message="Candle history is not available for this source",
            source_name=self.name,
        )

    # =========================================================
    # HTTP
    # =========================================================

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout),
                headers=self._get_default_headers(),
            )
            self._owns_session = True
        return self._session

    def _get_default_headers(self) -> dict[str, str]:
        """Get default HTTP headers."""
        return {
            "Accept": "application/json",
            "User-Agent": "btc-ticker-ingest/1.0",
        }

    async def _get_json(
        self,
        url: str,
        params: Optional[dict[str, Any]] = None,
    ) -> Any:
        """
        Issue one GET and decode the JSON body.

        Non-2xx responses are rejected before the body is parsed.
        """
        session = await self._get_session()
        self._request_count += 1

        start_time = time.time()
        try:
            async with session.get(
                url,
                params=params,
                timeout=aiohttp.ClientTimeout(total=self._timeout),
            ) as response:
                body = await response.read()
                latency_ms = (time.time() - start_time) * 1000

                if not 200 <= response.status < 300:
                    self._error_count += 1
                    raise NetworkError(
                        message=f"HTTP {response.status}",
                        source_name=self.name,
                        status_code=response.status,
                        request_url=url,
                        context={"body": body[:500].decode("utf-8", errors="replace")},
                    )

                logger.debug(f"[{self.name}] GET {url} completed in {latency_ms:.1f}ms")

        except asyncio.TimeoutError as e:
            self._error_count += 1
            raise NetworkError(
                message=f"Request timed out after {self._timeout}s",
                source_name=self.name,
                request_url=url,
                original_error=e,
                context={"timeout": True},
            ) from e
        except aiohttp.ClientError as e:
            self._error_count += 1
            raise NetworkError(
                message=f"Connection error: {e}",
                source_name=self.name,
                request_url=url,
                original_error=e,
            ) from e

        try:
            return json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            self._error_count += 1
            raise ParseError(
                message="Response body is not valid UTF-8 JSON",
                source_name=self.name,
                raw_data=body[:500],
                original_error=e,
            ) from e

    # =========================================================
    # FIELD CONVERSION
    # =========================================================

    def _require_object(self, payload: Any) -> dict[str, Any]:
        if not isinstance(payload, dict):
            raise ParseError(
                message=f"Expected JSON object, got {type(payload).__name__}",
                source_name=self.name,
                raw_data=payload,
            )
        return payload

    def _require_field(self, payload: dict[str, Any], field_name: str) -> Any:
        value = payload.get(field_name)
        if value is None:
            raise ParseError(
                message=f"Missing field '{field_name}'",
                source_name=self.name,
                raw_data=payload,
                field_name=field_name,
            )
        return value

    def _to_float(self, value: Any, field_name: str) -> float:
        """Convert a string or number field to a finite float."""
        if isinstance(value, bool):
            raise FormatError(
                message=f"Field '{field_name}' is not numeric: {value!r}",
                source_name=self.name,
                raw_data=value,
                field_name=field_name,
            )
        try:
            result = float(value)
        except (TypeError, ValueError) as e:
            raise FormatError(
                message=f"Field '{field_name}' is not numeric: {value!r}",
                source_name=self.name,
                raw_data=value,
                field_name=field_name,
                original_error=e,
            ) from e
        if not math.isfinite(result):
            raise FormatError(
                message=f"Field '{field_name}' is not finite: {value!r}",
                source_name=self.name,
                raw_data=value,
                field_name=field_name,
            )
        return result

    def _to_int(self, value: Any, field_name: str) -> int:
        """Convert a string or integral number field to int."""
        if isinstance(value, bool):
            raise FormatError(
                message=f"Field '{field_name}' is not an integer: {value!r}",
                source_name=self.name,
                raw_data=value,
                field_name=field_name,
            )
        if isinstance(value, float):
            if not value.is_integer():
                raise FormatError(
                    message=f"Field '{field_name}' is not an integer: {value!r}",
                    source_name=self.name,
                    raw_data=value,
                    field_name=field_name,
                )
            return int(value)
        try:
            return int(value)
        except (TypeError, ValueError) as e:
            raise FormatError(
                message=f"Field '{field_name}' is not an integer: {value!r}",
                source_name=self.name,
                raw_data=value,
                field_name=field_name,
                original_error=e,
            ) from e

    # =========================================================
    # LIFECYCLE
    # =========================================================

    def get_stats(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "request_count": self._request_count,
            "error_count": self._error_count,
        }

    async def close(self) -> None:
        """Close the HTTP session if this adapter created it."""
        if self._session and self._owns_session and not self._session.closed:
            await self._session.close()
            logger.debug(f"[{self.name}] HTTP session closed")

    async def __aenter__(self) -> "BaseTickerSource":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
