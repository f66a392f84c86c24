"""Application-wide constants for the simulator studio."""

from __future__ import annotations

API_TITLE = "Simulator Studio API"
API_DESCRIPTION = "Bookings, credits and studio administration for the simulator studio"
API_VERSION = "0.1.0"
API_PREFIX = "/api"

# Opening window used for weekdays with no business_hours row
DEFAULT_OPEN_HOUR = 8
DEFAULT_CLOSE_HOUR = 18

# Booking duration constraints (whole hours)
MIN_BOOKING_HOURS = 1
MAX_BOOKING_HOURS = 12

DEFAULT_COACH_HOURLY_RATE = "75.00"

# Reserved package carrying the studio's per-hour price
HOURLY_RATE_PACKAGE_NAME = "hourly_rate"

# Sunday first, matching day_of_week 0..6 as stored
DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]

# Query limits
DEFAULT_QUERY_LIMIT = 100
MAX_QUERY_LIMIT = 1000
MAX_SESSION_DAYS = 31
