"""Routes module for the token quota dashboard.

This module contains all API route handlers organized by functionality.
"""

from dashboard.routes.analytics import router as analytics_router

__all__ = ["analytics_router"]
