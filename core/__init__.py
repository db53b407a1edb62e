"""
Core Module.

Process-wide settings shared by ingestion, storage and the query API.
"""

from .config import ConfigurationError, Settings, load_settings

__all__ = ["ConfigurationError", "Settings", "load_settings"]
