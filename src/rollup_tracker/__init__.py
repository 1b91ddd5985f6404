"""Rollup job metadata, stats and their binary/document codecs."""

__version__ = "0.1.0"

__all__ = ["__version__"]
