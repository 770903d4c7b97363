"""Rollup registry — admission checks for rollup metadata records."""

__version__ = "0.4.0"
