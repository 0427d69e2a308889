"""Client for the sunrise-sunset.org time service."""

import re
from datetime import date, datetime, tzinfo
from typing import Optional

import requests

from .config import DEBUG, FETCH_TIMEOUT, SUNRISE_API_URL
from .errors import FetchTimeout, MalformedResponse, NetworkFailure
from .models import SunTimes
from .ports import TimeService

# SunTimes field -> response field
RESULT_FIELDS = {
    "nautical_dawn": "nautical_twilight_begin",
    "civil_dawn": "civil_twilight_begin",
    "sunrise": "sunrise",
    "solar_noon": "solar_noon",
    "sunset": "sunset",
    "civil_dusk": "civil_twilight_end",
    "nautical_dusk": "nautical_twilight_end",
}

# Returned by the service for events that do not happen on that day (polar regions)
NO_EVENT_YEAR = 1970

_FRACTION_RE = re.compile(r"\.(\d+)")
_COMPACT_OFFSET_RE = re.compile(r"([+-]\d{2})(\d{2})$")


def parse_timestamp(value: str) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp as the service returns it.

    Accepts fractional or whole seconds, a ``Z`` suffix, ``+hh:mm`` or
    ``+hhmm`` offsets. Returns None when the value cannot be parsed or
    carries no offset.
    """
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _COMPACT_OFFSET_RE.sub(r"\1:\2", text)
    # fromisoformat wants exactly 3 or 6 fraction digits on older Pythons
    text = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None

    if parsed.tzinfo is None:
        return None
    return parsed


class SunriseSunsetClient(TimeService):
    """
    Fetches sun times from https://api.sunrise-sunset.org.

    Each timestamp is converted to the client's timezone and its wall-clock
    time re-anchored onto the requested date.
    """

    def __init__(
        self,
        base_url: str = SUNRISE_API_URL,
        timeout: float = FETCH_TIMEOUT,
        tz: Optional[tzinfo] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Args:
            base_url: JSON endpoint of the time service
            timeout: Seconds before the request fails with FetchTimeout
            tz: Timezone of the local calendar (None = system local time)
            session: Optional requests session (defaults to module-level requests)
        """
        self.base_url = base_url
        self.timeout = timeout
        self.tz = tz
        self._http = session or requests

    def fetch_sun_times(self, latitude: float, longitude: float, day: date) -> SunTimes:
        params = {
            "lat": latitude,
            "lng": longitude,
            "formatted": 0,
            "date": day.isoformat(),
        }
        if DEBUG:
            print(f"[Sunrise] GET {self.base_url} {params}")

        try:
            response = self._http.get(self.base_url, params=params, timeout=self.timeout)
        except requests.exceptions.Timeout:
            raise FetchTimeout(f"Time service did not answer within {self.timeout:g}s")
        except requests.exceptions.InvalidURL as e:
            raise NetworkFailure(f"Invalid time service URL: {e}")
        except requests.exceptions.RequestException as e:
            raise NetworkFailure(f"Cannot reach time service: {e}")

        if response.status_code != 200:
            raise NetworkFailure(f"Time service answered HTTP {response.status_code}")

        try:
            payload = response.json()
        except ValueError:
            raise MalformedResponse("Time service response is not valid JSON")

        return self.parse_payload(payload, day)

    def parse_payload(self, payload, day: date) -> SunTimes:
        """Build SunTimes for ``day`` from a decoded response body."""
        if not isinstance(payload, dict):
            raise MalformedResponse("Time service response is not an object")

        status = payload.get("status")
        if status != "OK":
            raise MalformedResponse(f"Time service status: {status}")

        results = payload.get("results")
        if not isinstance(results, dict):
            raise MalformedResponse("Time service response has no results")

        values = {}
        for attr, key in RESULT_FIELDS.items():
            parsed = parse_timestamp(results.get(key))
            if parsed is None:
                raise MalformedResponse(f"Could not parse {key}: {results.get(key)!r}")
            if parsed.year == NO_EVENT_YEAR:
                raise MalformedResponse(f"{key} does not occur on {day.isoformat()}")
            values[attr] = self._anchor(parsed, day)

        return SunTimes(**values).validate()

    def _anchor(self, instant: datetime, day: date) -> datetime:
        """Put the local wall-clock time of ``instant`` onto ``day``."""
        if self.tz is not None:
            wall = instant.astimezone(self.tz).time()
            return datetime.combine(day, wall, tzinfo=self.tz)
        wall = instant.astimezone().time()
        return datetime.combine(day, wall).astimezone()
