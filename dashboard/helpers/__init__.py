"""Shared helpers for the dashboard service."""

from dashboard.helpers.timestamps import ensure_utc, parse_timestamp, to_iso, utc_now

__all__ = ["ensure_utc", "parse_timestamp", "to_iso", "utc_now"]
