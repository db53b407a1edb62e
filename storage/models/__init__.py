"""
ORM Models Package.

============================================================
PURPOSE
============================================================
Importing this package registers every series table with
Base.metadata so a single create_all() builds the schema.

============================================================
"""

from storage.models.base import Base, CreatedTimeMixin, SeriesRowMixin
from storage.models.series import (
    BitstampTickerLog,
    BrtiTickerLog,
    GdaxCandleLog,
    GdaxTickerLog,
)

__all__ = [
    "Base",
    "CreatedTimeMixin",
    "SeriesRowMixin",
    "BitstampTickerLog",
    "BrtiTickerLog",
    "GdaxCandleLog",
    "GdaxTickerLog",
]
