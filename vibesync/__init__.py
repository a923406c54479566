"""Vibesync: event records, media and user interactions kept in sync."""

__version__ = "0.1.0"
