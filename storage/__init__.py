"""
Storage Package.

This package owns every persisted ticker and candle row.
The store is the only component permitted to write.

Modules:
- models/: ORM tables, one per (source, series kind)
- repositories/: Data access layer and the TimeSeriesStore facade
"""
