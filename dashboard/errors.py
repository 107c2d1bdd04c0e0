"""Error taxonomy for the analytics engine.

Every error carries a stable machine-readable code and the HTTP status the
API layer should answer with. Empty query results are never errors.
"""

from typing import Any, Dict


class AnalyticsError(Exception):
    """Base class for errors surfaced to dashboard callers."""

    status_code: int = 500
    default_code: str = "ANALYTICS_ERROR"

    def __init__(self, message: str, code: str = None):
        self.message = message
        self.code = code or self.default_code
        super().__init__(f"{self.code}: {message}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON error body."""
        return {"error": self.code, "message": self.message}


class InvalidRangeError(AnalyticsError):
    """Raised for missing, unparseable or inverted time bounds."""

    status_code = 400
    default_code = "BAD_RANGE"


class UnsupportedGroupingError(AnalyticsError):
    """Raised when a group or mode value is outside the accepted set."""

    status_code = 400
    default_code = "UNSUPPORTED_GROUPING"


class DataSourceError(AnalyticsError):
    """Raised when the read-only store fails or times out."""

    status_code = 500
    default_code = "DATA_SOURCE_ERROR"
