"""
Providers package - Ticker source implementations.
"""

from data_sources.providers.bitstamp import BitstampTickerSource
from data_sources.providers.brti import BrtiSource
from data_sources.providers.gdax import GdaxSource


__all__ = [
    "BitstampTickerSource",
    "BrtiSource",
    "GdaxSource",
]
