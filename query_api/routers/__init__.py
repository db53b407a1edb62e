"""
Query API Routers.
"""
from . import health, series, sources

__all__ = ["health", "series", "sources"]
