"""Derives tomorrow's wake time and keeps exactly one alarm armed for it."""

import threading
import uuid
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Callable, FrozenSet, Optional

from .config import TEST_ALARM_DELAY
from .errors import InvalidCoordinates, LocationUnavailable, NetworkFailure, SchedulerRejected, SunriseError
from .locations import LocationStore
from .models import (
    AlarmMetadata,
    CoordinatorState,
    SavedLocation,
    ScheduledAlarm,
    SunTimes,
    TimingPolicy,
)
from .ports import AlarmScheduler, SettingsStore, TimeService
from .resolver import resolve

# Settings key holding the armed alarm, so it survives a restart
ALARM_KEY = "alarm"


class AlarmRetimingCoordinator:
    """
    Owner of the single alarm slot.

    Every public operation is serialised on one lock, returns True on success
    and False on failure, and stores the failure in ``last_error`` instead of
    raising it. A failed operation leaves the previous stable state in place.
    Cancel always precedes arm, so at most one alarm is armed at any time.
    """

    def __init__(
        self,
        time_service: TimeService,
        scheduler: AlarmScheduler,
        settings: SettingsStore,
        clock: Callable[[], datetime] = None,
        tz: Optional[tzinfo] = None,
    ):
        """
        Args:
            time_service: Source of sun times
            scheduler: Alarm scheduler to arm and cancel alarms with
            settings: Settings store holding locations, preferences and the armed alarm
            clock: Returns the current timezone-aware time (defaults to UTC now)
            tz: Timezone of the local calendar (None = system local time)
        """
        self.time_service = time_service
        self.scheduler = scheduler
        self.settings = settings
        self.locations = LocationStore(settings)
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._tz = tz

        self._lock = threading.RLock()
        self._busy = False
        self._state = CoordinatorState.IDLE
        self._alarm: Optional[ScheduledAlarm] = None

        self.last_sun_times: Optional[SunTimes] = None
        self.last_error: Optional[SunriseError] = None

        self._restore()
        self._unsubscribe = scheduler.subscribe(self._on_armed_ids)

    # --- Observable state ---

    @property
    def state(self) -> CoordinatorState:
        return self._state

    @property
    def alarm(self) -> Optional[ScheduledAlarm]:
        return self._alarm

    @property
    def target(self) -> Optional[datetime]:
        return self._alarm.target if self._alarm else None

    def snapshot(self) -> dict:
        """
        State for display, as plain JSON-friendly values.

        Reads the observable fields without the operation lock, so a caller
        sees RESOLVING while a fetch is in flight instead of waiting for it.
        """
        state, alarm = self._state, self._alarm
        sun_times, error = self.last_sun_times, self.last_error
        return {
            "state": state.value,
            "alarm": alarm.to_dict() if alarm else None,
            "target": alarm.target.isoformat() if alarm else None,
            "sun_times": sun_times.to_dict() if sun_times else None,
            "error": error.to_dict() if error else None,
        }

    # --- Operations ---

    def activate(self, location: Optional[SavedLocation] = None, policy: Optional[TimingPolicy] = None) -> bool:
        """
        Arm an alarm for tomorrow's sun times at ``location`` under ``policy``.

        Missing arguments are read from the settings store (selected location,
        stored timing).
        """

        def run():
            target_location = location or self.locations.selected
            if target_location is None:
                raise LocationUnavailable("No location selected")
            self._activate(target_location, policy or self.locations.timing)

        return self._run("activate", run)

    def cancel(self) -> bool:
        """Cancel the armed alarm. Safe to call when nothing is armed."""

        def run():
            alarm = self._alarm
            if alarm is not None:
                self._cancel_quietly(alarm.alarm_id)
            self._clear()

        return self._run("cancel", run)

    def retime_for_next_day(self) -> bool:
        """
        Re-derive and re-arm tomorrow's alarm when auto-repeat is on.

        Reads location and policy from the settings store, so it works after a
        restart with nothing armed.
        """
        with self._lock:
            if not self.locations.auto_repeat:
                print("[Retime] Auto-repeat is off, not retiming")
                return False
            print("[Retime] Retiming alarm for the next day")
            return self.activate()

    def refresh(self) -> bool:
        """
        Re-run the last activation, or refresh the displayed sun times.

        With an alarm armed by a timing policy, it is re-derived with that
        alarm's location and policy (auto-repeat kept as armed). Otherwise
        only tomorrow's sun times for the selected location are fetched.
        """

        def run():
            alarm = self._alarm
            if alarm is not None and alarm.policy is not None and alarm.location is not None:
                self._activate(alarm.location, alarm.policy, auto_repeat=alarm.auto_repeat)
                return

            self._update_sun_times()

        return self._run("refresh", run)

    def update_sun_times(self) -> bool:
        """Fetch tomorrow's sun times for the selected location, for display only."""
        return self._run("sun times", self._update_sun_times)

    def schedule_test_alarm(self, delay_seconds: int = TEST_ALARM_DELAY) -> bool:
        """Arm an alarm ``delay_seconds`` from now, skipping sun times entirely."""

        def run():
            selected = self.locations.selected
            name = selected.display_name if selected else "Test Location"
            alarm = ScheduledAlarm(
                alarm_id=uuid.uuid4().hex,
                target=self._now() + timedelta(seconds=delay_seconds),
                location_label=name,
            )
            self._replace(alarm)

        return self._run("test alarm", run)

    def on_alarm_fired(self, alarm_id: str, metadata: AlarmMetadata) -> bool:
        """Fire signal from the scheduler: retime for the next day unless it was a test alarm."""
        if metadata.is_test:
            print(f"[Retime] Test alarm {alarm_id} fired, not retiming")
            return False
        return self.retime_for_next_day()

    def close(self):
        """Stop observing the scheduler."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    # --- Internals ---

    def _run(self, name: str, operation: Callable[[], None]) -> bool:
        with self._lock:
            prior = self._state
            self._busy = True
            try:
                operation()
            except SunriseError as e:
                if self._state is CoordinatorState.RESOLVING:
                    self._state = prior
                self.last_error = e
                print(f"[Retime] {name} failed ({e.kind}): {e.message}")
                return False
            finally:
                self._busy = False
            self.last_error = None
            return True

    def _now(self) -> datetime:
        now = self._clock()
        return now.astimezone(self._tz) if self._tz is not None else now.astimezone()

    def _tomorrow(self) -> date:
        return self._now().date() + timedelta(days=1)

    def _fetch(self, location: SavedLocation) -> SunTimes:
        day = self._tomorrow()
        try:
            return self.time_service.fetch_sun_times(location.latitude, location.longitude, day)
        except SunriseError:
            raise
        except Exception as e:
            raise NetworkFailure(f"Time service error: {e}") from e

    def _update_sun_times(self):
        selected = self.locations.selected
        if selected is None:
            raise LocationUnavailable("No location selected")
        self._state = CoordinatorState.RESOLVING
        self.last_sun_times = self._fetch(selected)
        self._state = CoordinatorState.ARMED if self._alarm else CoordinatorState.IDLE

    def _activate(self, location: SavedLocation, policy: TimingPolicy, auto_repeat: Optional[bool] = None):
        self._state = CoordinatorState.RESOLVING
        sun_times = self._fetch(location)
        self.last_sun_times = sun_times

        alarm = ScheduledAlarm(
            alarm_id=uuid.uuid4().hex,
            target=resolve(sun_times, policy),
            location_label=location.display_name,
            policy=policy,
            auto_repeat=self.locations.auto_repeat if auto_repeat is None else auto_repeat,
            location=location,
        )
        self._replace(alarm)
        print(f"[Retime] {policy.value} at {location.display_name}: alarm set for {alarm.target.isoformat()}")

    def _replace(self, alarm: ScheduledAlarm):
        """Cancel the current alarm, then arm ``alarm`` in its slot."""
        previous = self._alarm
        if previous is not None:
            self._cancel_quietly(previous.alarm_id)

        try:
            self._arm(alarm)
        except SchedulerRejected:
            self._clear()
            if previous is not None and previous.target > self._clock():
                try:
                    self._arm(previous)
                    self._set_armed(previous)
                    print(f"[Retime] Restored previous alarm {previous.alarm_id}")
                except SchedulerRejected as e:
                    print(f"[Retime] Could not restore previous alarm: {e.message}")
            raise

        self._set_armed(alarm)

    def _arm(self, alarm: ScheduledAlarm):
        metadata = AlarmMetadata(
            is_before=alarm.policy.is_before if alarm.policy else False,
            location_name=alarm.location_label,
            is_test=alarm.policy is None,
        )
        try:
            self.scheduler.arm(alarm.alarm_id, alarm.target, metadata)
        except SchedulerRejected:
            raise
        except Exception as e:
            raise SchedulerRejected(f"Scheduler error: {e}") from e

    def _cancel_quietly(self, alarm_id: str):
        try:
            self.scheduler.cancel(alarm_id)
        except Exception as e:
            # Already gone or scheduler unavailable: the slot is released either way
            print(f"[Retime] Cancel of {alarm_id} reported: {e}")

    def _set_armed(self, alarm: ScheduledAlarm):
        self._alarm = alarm
        self._state = CoordinatorState.ARMED
        self.settings.set(ALARM_KEY, alarm.to_dict())

    def _clear(self):
        self._alarm = None
        self._state = CoordinatorState.IDLE
        self.settings.delete(ALARM_KEY)

    def _restore(self):
        data = self.settings.get(ALARM_KEY)
        if not data:
            return

        try:
            alarm = ScheduledAlarm.from_dict(data)
        except (KeyError, TypeError, ValueError, InvalidCoordinates) as e:
            print(f"[Retime] Dropping unreadable stored alarm: {e}")
            self.settings.delete(ALARM_KEY)
            return

        if alarm.alarm_id in self.scheduler.armed_ids():
            self._alarm = alarm
            self._state = CoordinatorState.ARMED
            print(f"[Retime] Restored alarm for {alarm.target.isoformat()}")
            return

        if alarm.target <= self._clock():
            print(f"[Retime] Stored alarm {alarm.alarm_id} is already past")
            self.settings.delete(ALARM_KEY)
            return

        # Still due (restart before dawn): arm it again under the same id
        self._cancel_quietly(alarm.alarm_id)
        try:
            self._arm(alarm)
        except SchedulerRejected as e:
            print(f"[Retime] Could not re-arm stored alarm: {e.message}")
            self.settings.delete(ALARM_KEY)
            return
        self._alarm = alarm
        self._state = CoordinatorState.ARMED
        print(f"[Retime] Re-armed stored alarm for {alarm.target.isoformat()}")

    # --- Armed alarm observation ---

    def _on_armed_ids(self, ids: FrozenSet[str]):
        # May be called from the scheduler's thread while it holds its own
        # locks, so never block here
        if self._lock.acquire(blocking=False):
            try:
                if not self._busy:
                    self._reconcile(ids)
                    return
            finally:
                self._lock.release()
        threading.Thread(target=self._reconcile_later, daemon=True).start()

    def _reconcile_later(self):
        with self._lock:
            self._reconcile(self.scheduler.armed_ids())

    def _reconcile(self, ids: FrozenSet[str]):
        alarm = self._alarm
        if self._state is not CoordinatorState.ARMED or alarm is None:
            return
        if alarm.alarm_id not in ids:
            print(f"[Retime] Alarm {alarm.alarm_id} was dismissed or fired")
            self._clear()
