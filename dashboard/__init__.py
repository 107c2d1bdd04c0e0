"""Token quota dashboard: usage analytics and quota tracking service."""
