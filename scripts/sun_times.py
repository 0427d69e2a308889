#!/usr/bin/env python3
"""Print tomorrow's sun times and the wake time of every timing policy."""

import argparse
import sys
from datetime import date, timedelta
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.validation import validate_coordinates
from sunrise.errors import SunriseError
from sunrise.locations import LocationStore
from sunrise.main import load_timezone
from sunrise.resolver import resolve_all
from sunrise.settings_store import JsonSettingsStore
from sunrise.sun_service import SunriseSunsetClient
from sunrise.config import TIMEZONE


def main():
    parser = argparse.ArgumentParser(description="Show sun times and policy wake times")
    parser.add_argument("--lat", type=float, help="Latitude (default: selected saved location)")
    parser.add_argument("--lng", type=float, help="Longitude (default: selected saved location)")
    parser.add_argument("--date", help="Date as YYYY-MM-DD (default: tomorrow)")
    args = parser.parse_args()

    if (args.lat is None) != (args.lng is None):
        parser.error("--lat and --lng must be given together")
    if args.lat is not None:
        validation = validate_coordinates(args.lat, args.lng)
        if not validation.is_valid:
            parser.error(validation.error_message)

    if args.lat is None:
        selected = LocationStore(JsonSettingsStore()).selected
        if selected is None:
            print("No location selected. Pass --lat and --lng.")
            return 1
        latitude, longitude, label = selected.latitude, selected.longitude, selected.display_name
    else:
        latitude, longitude, label = args.lat, args.lng, f"{args.lat}, {args.lng}"

    try:
        day = date.fromisoformat(args.date) if args.date else date.today() + timedelta(days=1)
    except ValueError:
        parser.error(f"Invalid date: {args.date}")

    client = SunriseSunsetClient(tz=load_timezone(TIMEZONE))
    try:
        sun_times = client.fetch_sun_times(latitude, longitude, day)
    except SunriseError as e:
        print(f"Error ({e.kind}): {e.message}")
        return 1

    print(f"Sun times for {label} on {day.isoformat()}:")
    for name, value in sun_times.to_dict().items():
        print(f"  {name:<14} {value}")

    print()
    print("Wake times:")
    for policy, instant in resolve_all(sun_times).items():
        print(f"  {policy.value:<14} {instant.strftime('%H:%M:%S')}  ({policy.subtitle})")

    return 0


if __name__ == "__main__":
    sys.exit(main())
