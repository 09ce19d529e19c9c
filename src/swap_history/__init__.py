"""Aggregated, self-refreshing swap history across accounts with CSV export."""

__version__ = "0.1.0"
