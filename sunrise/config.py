"""Configuration for the sunrise alarm service."""

import os

# Time service (https://sunrise-sunset.org/api)
SUNRISE_API_URL = os.environ.get("SUNRISE_API_URL", "https://api.sunrise-sunset.org/json")
FETCH_TIMEOUT = float(os.environ.get("SUNRISE_FETCH_TIMEOUT", "10"))  # seconds

# IANA zone name used to re-anchor sun times onto the local calendar.
# None = system local time
TIMEZONE = os.environ.get("SUNRISE_TZ") or None

# Test alarm fires this many seconds after it is requested
TEST_ALARM_DELAY = int(os.environ.get("TEST_ALARM_DELAY", "10"))

# Daily maintenance retiming (HH:MM, local). Keep it after any dawn so
# "tomorrow" never skips the alarm that is still due this morning.
MAINTENANCE_TIME = os.environ.get("MAINTENANCE_TIME", "12:00")

# Flask API settings
API_HOST = os.environ.get("SUNRISE_HOST", "127.0.0.1")
API_PORT = int(os.environ.get("SUNRISE_PORT", "5000"))

# Debug settings
DEBUG = os.environ.get("SUNRISE_DEBUG", "0") == "1"
