"""Main entry point for the sunrise alarm service."""

import argparse
import os
import signal
import sys
import time
from datetime import tzinfo
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

MAINTENANCE_JOB_ID = "daily_retime"


def load_timezone(name: Optional[str]) -> Optional[tzinfo]:
    """Timezone for the local calendar, or None for system local time."""
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        print(f"[Sunrise] Unknown timezone {name!r}, using system local time")
        return None


def parse_maintenance_time(time_str: str) -> tuple[int, int]:
    """Parse HH:MM, falling back to noon."""
    try:
        hour, minute = map(int, time_str.split(":"))
        if 0 <= hour < 24 and 0 <= minute < 60:
            return hour, minute
    except ValueError:
        pass
    print(f"[Sunrise] Invalid maintenance time: {time_str}, using 12:00")
    return 12, 0


def build_services(settings_path=None):
    """Create the settings store, time service, scheduler and coordinator."""
    from .config import TIMEZONE
    from .coordinator import AlarmRetimingCoordinator
    from .scheduler import APSAlarmScheduler
    from .settings_store import JsonSettingsStore
    from .sun_service import SunriseSunsetClient

    tz = load_timezone(TIMEZONE)
    settings = JsonSettingsStore(settings_path)
    client = SunriseSunsetClient(tz=tz)
    # Jobs run on the same calendar as the coordinator
    scheduler = APSAlarmScheduler(BackgroundScheduler(timezone=tz) if tz is not None else None)
    coordinator = AlarmRetimingCoordinator(client, scheduler, settings, tz=tz)
    return coordinator, scheduler


def schedule_maintenance(scheduler, coordinator, time_str: str):
    """Retime the alarm once a day at local ``time_str``, independent of it firing."""
    hour, minute = parse_maintenance_time(time_str)
    scheduler.scheduler.add_job(
        coordinator.retime_for_next_day,
        CronTrigger(hour=hour, minute=minute, timezone=scheduler.scheduler.timezone),
        id=MAINTENANCE_JOB_ID,
        replace_existing=True,
    )
    print(f"[Retime] Daily maintenance scheduled for {hour:02d}:{minute:02d}")


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Sunrise Alarm Service")
    parser.add_argument("--debug", action="store_true", help="Enable debug output")
    parser.add_argument("--no-api", action="store_true", help="Run the scheduler without the HTTP API")
    args = parser.parse_args()

    # Set debug mode before imports
    if args.debug:
        os.environ["SUNRISE_DEBUG"] = "1"

    from .config import API_HOST, API_PORT, DEBUG, MAINTENANCE_TIME

    coordinator, scheduler = build_services()

    def shutdown(signum=None, frame=None):
        print("\n[Sunrise] Shutting down...")
        coordinator.close()
        scheduler.shutdown()
        sys.exit(0)

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)

    print("=" * 50)
    print("Sunrise Alarm Service")
    print("=" * 50)

    selected = coordinator.locations.selected
    print(f"Location: {selected.display_name if selected else '(none selected)'}")
    print(f"Timing: {coordinator.locations.timing.value}")
    print(f"Auto-repeat: {coordinator.locations.auto_repeat}")
    print("Debug:", "ON" if DEBUG else "OFF")
    print()

    # A fired alarm is retimed for the next day when auto-repeat is on
    scheduler.on_fire(coordinator.on_alarm_fired)
    schedule_maintenance(scheduler, coordinator, MAINTENANCE_TIME)
    scheduler.start()

    # A stored alarm still due was re-armed by the coordinator; otherwise arm tomorrow's
    if coordinator.alarm is None and selected is not None and coordinator.locations.auto_repeat:
        coordinator.retime_for_next_day()

    next_fire = scheduler.next_fire_time()
    print(f"Next alarm: {next_fire.isoformat() if next_fire else 'none'}")

    if args.no_api:
        print("Sunrise service running. Press Ctrl+C to stop.")
        try:
            while True:
                time.sleep(60)
        except KeyboardInterrupt:
            pass
        finally:
            shutdown()
        return

    from app import create_app

    app = create_app(coordinator=coordinator)
    try:
        app.run(host=API_HOST, port=API_PORT, debug=False, use_reloader=False)
    finally:
        shutdown()


if __name__ == "__main__":
    main()
