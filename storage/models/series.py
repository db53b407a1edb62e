"""
Series ORM Models.

============================================================
PURPOSE
============================================================
One append-only table per (source, series kind), keyed by the
event timestamp in whole seconds.

============================================================
DATA LIFECYCLE ROLE
============================================================
- Mutability: IMMUTABLE (insert-or-ignore only)
- Retention: unbounded, nothing here deletes rows
- Source: ticker adapters via the ingestion scheduler
- Consumers: query service

============================================================
MODELS
============================================================
- BitstampTickerLog: bitstamp_btcusd_logs (price + hourly low/high)
- GdaxTickerLog: gdax_btcusd_logs (price)
- GdaxCandleLog: gdax_btcusd_historic (low/high/open/close)
- BrtiTickerLog: brti_logs (index value)

============================================================
"""

from typing import Any

from sqlalchemy import BigInteger, Float
from sqlalchemy.orm import Mapped, mapped_column

from data_sources.models import CandleRecord, CanonicalTicker, Source
from storage.models.base import Base, CreatedTimeMixin, SeriesRowMixin


class BitstampTickerLog(Base, CreatedTimeMixin, SeriesRowMixin):
    """Bitstamp hourly ticker observations."""

    __tablename__ = "bitstamp_btcusd_logs"

    MINIMIZABLE_COLUMNS = ("price", "low", "high")

    timestamp: Mapped[int] = mapped_column(
        "log_time", BigInteger, primary_key=True, autoincrement=False
    )
    price: Mapped[float] = mapped_column("log_price", Float, nullable=False, index=True)
    low: Mapped[float] = mapped_column("log_low_hourly", Float, nullable=False, index=True)
    high: Mapped[float] = mapped_column("log_high_hourly", Float, nullable=False, index=True)

    @classmethod
    def from_record(cls, record: CanonicalTicker) -> dict[str, Any]:
        return {
            "timestamp": record.timestamp,
            "price": record.price,
            "low": record.low if record.low is not None else record.price,
            "high": record.high if record.high is not None else record.price,
        }

    def to_record(self) -> CanonicalTicker:
        return CanonicalTicker(
            source=Source.BITSTAMP,
            timestamp=self.timestamp,
            price=self.price,
            low=self.low,
            high=self.high,
        )


class GdaxTickerLog(Base, CreatedTimeMixin, SeriesRowMixin):
    """GDAX last-trade ticker observations."""

    __tablename__ = "gdax_btcusd_logs"

    MINIMIZABLE_COLUMNS = ("price",)

    timestamp: Mapped[int] = mapped_column(
        "log_time", BigInteger, primary_key=True, autoincrement=False
    )
    price: Mapped[float] = mapped_column("log_price", Float, nullable=False, index=True)

    @classmethod
    def from_record(cls, record: CanonicalTicker) -> dict[str, Any]:
        return {"timestamp": record.timestamp, "price": record.price}

    def to_record(self) -> CanonicalTicker:
        return CanonicalTicker(
            source=Source.GDAX,
            timestamp=self.timestamp,
            price=self.price,
        )


class GdaxCandleLog(Base, CreatedTimeMixin, SeriesRowMixin):
    """GDAX historic candle buckets."""

    __tablename__ = "gdax_btcusd_historic"

    MINIMIZABLE_COLUMNS = ("low", "high", "open", "close")

    timestamp: Mapped[int] = mapped_column(
        "log_time", BigInteger, primary_key=True, autoincrement=False
    )
    low: Mapped[float] = mapped_column("log_low", Float, nullable=False, index=True)
    high: Mapped[float] = mapped_column("log_high", Float, nullable=False, index=True)
    open: Mapped[float] = mapped_column("log_open", Float, nullable=False, index=True)
    close: Mapped[float] = mapped_column("log_close", Float, nullable=False, index=True)

    @classmethod
    def from_record(cls, record: CandleRecord) -> dict[str, Any]:
        return {
            "timestamp": record.timestamp,
            "low": record.low,
            "high": record.high,
            "open": record.open,
            "close": record.close,
        }

    def to_record(self) -> CandleRecord:
        return CandleRecord(
            timestamp=self.timestamp,
            open=self.open,
            close=self.close,
            low=self.low,
            high=self.high,
        )


class BrtiTickerLog(Base, CreatedTimeMixin, SeriesRowMixin):
    """CME CF Bitcoin Real Time Index observations."""

    __tablename__ = "brti_logs"

    MINIMIZABLE_COLUMNS = ("price",)

    timestamp: Mapped[int] = mapped_column(
        "log_time", BigInteger, primary_key=True, autoincrement=False
    )
    price: Mapped[float] = mapped_column("log_price", Float, nullable=False, index=True)

    @classmethod
    def from_record(cls, record: CanonicalTicker) -> dict[str, Any]:
        return {"timestamp": record.timestamp, "price": record.price}

    def to_record(self) -> CanonicalTicker:
        return CanonicalTicker(
            source=Source.BRTI,
            timestamp=self.timestamp,
            price=self.price,
        )
