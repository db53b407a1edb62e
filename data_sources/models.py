"""
Data Source Models - Canonical ticker and candle structures.

Every adapter normalizes its wire format into one of these records.
No downstream module depends on provider-specific fields.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class Source(str, Enum):
    """Upstream feeds that publish a BTC/USD price."""
    BITSTAMP = "bitstamp"
    GDAX = "gdax"
    BRTI = "brti"


class SeriesKind(str, Enum):
    """Shape of the record a feed produces."""
    TICKER = "ticker"
    CANDLE = "candle"


class SourceKind(str, Enum):
    """
    A (source, series kind) pair.

    Each member maps to exactly one persisted series.
    """
    BITSTAMP_TICKER = "bitstamp_ticker"
    GDAX_TICKER = "gdax_ticker"
    GDAX_CANDLE = "gdax_candle"
    BRTI_TICKER = "brti_ticker"

    @property
    def source(self) -> Source:
        return Source(self.value.rsplit("_", 1)[0])

    @property
    def kind(self) -> SeriesKind:
        return SeriesKind(self.value.rsplit("_", 1)[1])

    @classmethod
    def of(cls, source: Source, kind: SeriesKind) -> "SourceKind":
        """Look up the member for a source and kind."""
        return cls(f"{Source(source).value}_{SeriesKind(kind).value}")


@dataclass(frozen=True)
class CanonicalTicker:
    """
    Normalized spot observation.

    Built fresh on every poll and never mutated. Sources that do not
    report an hourly range leave low/high as None.
    """
    source: Source
    timestamp: int
    price: float
    low: Optional[float] = None
    high: Optional[float] = None

    def is_valid(self) -> bool:
        """Structural invariants: positive timestamp and finite price."""
        return self.timestamp > 0 and math.isfinite(self.price)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "source": self.source.value,
            "timestamp": self.timestamp,
            "price": self.price,
            "low": self.low,
            "high": self.high,
        }


@dataclass(frozen=True)
class CandleRecord:
    """
    One historic aggregation bucket.

    open <= 0 marks a bucket with no trading; the store discards those.
    """
    timestamp: int
    open: float
    close: float
    low: float
    high: float

    def has_trades(self) -> bool:
        return self.open > 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "timestamp": self.timestamp,
            "open": self.open,
            "close": self.close,
            "low": self.low,
            "high": self.high,
        }


@dataclass
class SourceMetadata:
    """Metadata about a data source provider."""
    name: str
    display_name: str
    source: Source
    base_url: str
    default_product: str
    supported_kinds: list[SeriesKind] = field(default_factory=list)
    documentation_url: str = ""
    tags: list[str] = field(default_factory=list)

    def supports(self, kind: SeriesKind) -> bool:
        return kind in self.supported_kinds
