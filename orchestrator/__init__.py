"""
Orchestrator Package.

Process wiring for the ticker pipeline: CLI parsing, logging
setup and the asyncio runtime that hosts the scheduler and the
query API side by side.
"""

from .cli import build_settings, create_parser, print_banner, validate_args
from .runtime import bootstrap_database, run_pipeline, setup_logging

__all__ = [
    "create_parser",
    "build_settings",
    "validate_args",
    "print_banner",
    "setup_logging",
    "bootstrap_database",
    "run_pipeline",
]
