"""Utilities for shared application concerns."""

from rollup_tracker import __version__
from rollup_tracker.utils.logging import JsonLogFormatter, setup_logging

__all__ = ["__version__", "JsonLogFormatter", "setup_logging"]
