"""Alarm scheduler backed by APScheduler."""

import threading
from datetime import datetime, timezone
from typing import Callable, FrozenSet, Optional

from apscheduler.events import (
    EVENT_ALL_JOBS_REMOVED,
    EVENT_JOB_ADDED,
    EVENT_JOB_EXECUTED,
    EVENT_JOB_ERROR,
    EVENT_JOB_MISSED,
    EVENT_JOB_REMOVED,
)
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.date import DateTrigger

from .config import DEBUG
from .errors import SchedulerRejected
from .models import AlarmMetadata
from .ports import AlarmScheduler, ArmedIdsCallback

# Job ids of armed alarms carry this prefix so other jobs (daily maintenance)
# never show up as alarms
ALARM_JOB_PREFIX = "sunrise_alarm:"

_WATCHED_EVENTS = (
    EVENT_JOB_ADDED
    | EVENT_JOB_REMOVED
    | EVENT_JOB_EXECUTED
    | EVENT_JOB_ERROR
    | EVENT_JOB_MISSED
    | EVENT_ALL_JOBS_REMOVED
)


class APSAlarmScheduler(AlarmScheduler):
    """
    Arms each alarm as a one-shot DateTrigger job.

    When a job fires, the alert title is printed and every fire listener is
    called with the alarm id and its metadata. A fired job leaves the job
    store, which subscribers see as the id disappearing.
    """

    def __init__(self, scheduler: Optional[BackgroundScheduler] = None, clock: Callable[[], datetime] = None):
        self.scheduler = scheduler or BackgroundScheduler()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._subscribers: list[ArmedIdsCallback] = []
        self._fire_listeners: list[Callable[[str, AlarmMetadata], None]] = []
        self._lock = threading.Lock()
        self.scheduler.add_listener(self._on_job_event, _WATCHED_EVENTS)

    # --- Lifecycle ---

    def start(self, paused: bool = False):
        if self.scheduler.running:
            return
        self.scheduler.start(paused=paused)
        print("[Scheduler] Started")

    def shutdown(self):
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            print("[Scheduler] Stopped")

    # --- AlarmScheduler ---

    def arm(self, alarm_id: str, instant: datetime, metadata: AlarmMetadata) -> None:
        if instant.tzinfo is None:
            raise SchedulerRejected("Alarm time must be timezone-aware")
        if instant <= self._clock():
            raise SchedulerRejected(f"Alarm time {instant.isoformat()} is in the past")

        try:
            self.scheduler.add_job(
                self._fire,
                trigger=DateTrigger(run_date=instant),
                args=[alarm_id, metadata],
                id=ALARM_JOB_PREFIX + alarm_id,
                name=metadata.title,
                replace_existing=False,
                misfire_grace_time=300,
            )
        except Exception as e:
            raise SchedulerRejected(f"Scheduler refused alarm {alarm_id}: {e}")

        print(f"[Scheduler] Armed '{metadata.title}' ({metadata.location_name}) for {instant.isoformat()}")

    def cancel(self, alarm_id: str) -> None:
        try:
            self.scheduler.remove_job(ALARM_JOB_PREFIX + alarm_id)
            print(f"[Scheduler] Cancelled alarm {alarm_id}")
        except JobLookupError:
            if DEBUG:
                print(f"[Scheduler] Alarm {alarm_id} already gone")

    def armed_ids(self) -> FrozenSet[str]:
        return frozenset(
            job.id[len(ALARM_JOB_PREFIX):]
            for job in self.scheduler.get_jobs()
            if job.id.startswith(ALARM_JOB_PREFIX)
        )

    def subscribe(self, callback: ArmedIdsCallback) -> Callable[[], None]:
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe():
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def next_fire_time(self) -> Optional[datetime]:
        """Earliest armed alarm time, if any."""
        times = [
            job.trigger.run_date
            for job in self.scheduler.get_jobs()
            if job.id.startswith(ALARM_JOB_PREFIX)
        ]
        return min(times) if times else None

    # --- Firing ---

    def on_fire(self, listener: Callable[[str, AlarmMetadata], None]):
        """Register a callable run each time an alarm fires."""
        self._fire_listeners.append(listener)

    def _fire(self, alarm_id: str, metadata: AlarmMetadata):
        print(f"[Alarm] {metadata.title} ({metadata.location_name}) at {datetime.now().strftime('%H:%M')}")
        for listener in list(self._fire_listeners):
            try:
                listener(alarm_id, metadata)
            except Exception as e:
                print(f"[Alarm] Fire listener error: {e}")

    def _on_job_event(self, event):
        job_id = getattr(event, "job_id", None)
        if job_id is not None and not job_id.startswith(ALARM_JOB_PREFIX):
            return

        with self._lock:
            subscribers = list(self._subscribers)
        if not subscribers:
            return

        ids = self.armed_ids()
        for callback in subscribers:
            try:
                callback(ids)
            except Exception as e:
                print(f"[Scheduler] Subscriber error: {e}")
