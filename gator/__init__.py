"""Command-line RSS feed aggregator with users, feed follows and SQLite storage."""

__version__ = "0.1.0"