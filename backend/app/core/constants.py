"""Application-wide constants for the resort platform."""

from __future__ import annotations

# Branding
BRAND_NAME = "Resort"
API_TITLE = f"{BRAND_NAME} Scheduling API"
API_DESCRIPTION = (
    f"Backend API for {BRAND_NAME} - class schedules, session materialization, "
    "availability and bookings"
)
API_VERSION = "1.0.0"

# Query limits
DEFAULT_QUERY_LIMIT = 500
MAX_QUERY_LIMIT = 1000
