"""Tests for the APScheduler-backed alarm scheduler."""

import time
from datetime import datetime, timedelta, timezone

import pytest
from apscheduler.schedulers.background import BackgroundScheduler

from sunrise.coordinator import AlarmRetimingCoordinator
from sunrise.errors import SchedulerRejected
from sunrise.models import AlarmMetadata, CoordinatorState, SavedLocation, TimingPolicy
from sunrise.scheduler import ALARM_JOB_PREFIX, APSAlarmScheduler
from sunrise.settings_store import MemorySettingsStore
from tests.fakes import FakeTimeService

NOW = datetime(2026, 3, 10, 22, 0, tzinfo=timezone.utc)
METADATA = AlarmMetadata(is_before=True, location_name="Lisbon")


@pytest.fixture
def alarms():
    # Paused: jobs are stored but never run
    alarms = APSAlarmScheduler(BackgroundScheduler(timezone=timezone.utc), clock=lambda: NOW)
    alarms.start(paused=True)
    yield alarms
    alarms.shutdown()


def test_arm_and_cancel(alarms):
    alarms.arm("a1", NOW + timedelta(hours=8), METADATA)

    assert alarms.armed_ids() == {"a1"}
    assert alarms.next_fire_time() == NOW + timedelta(hours=8)
    assert alarms.scheduler.get_job(ALARM_JOB_PREFIX + "a1").name == "Sunrise Soon"

    alarms.cancel("a1")

    assert alarms.armed_ids() == frozenset()
    assert alarms.next_fire_time() is None


def test_cancel_unknown_alarm_is_ignored(alarms):
    alarms.cancel("never-armed")
    assert alarms.armed_ids() == frozenset()


def test_past_instant_is_rejected(alarms):
    with pytest.raises(SchedulerRejected):
        alarms.arm("late", NOW - timedelta(minutes=1), METADATA)
    assert alarms.armed_ids() == frozenset()


def test_naive_instant_is_rejected(alarms):
    with pytest.raises(SchedulerRejected):
        alarms.arm("naive", datetime(2026, 3, 11, 7, 12), METADATA)


def test_duplicate_id_is_rejected(alarms):
    alarms.arm("a1", NOW + timedelta(hours=8), METADATA)

    with pytest.raises(SchedulerRejected):
        alarms.arm("a1", NOW + timedelta(hours=9), METADATA)


def test_subscribers_see_armed_ids(alarms):
    seen = []
    unsubscribe = alarms.subscribe(seen.append)

    alarms.arm("a1", NOW + timedelta(hours=8), METADATA)
    alarms.cancel("a1")
    unsubscribe()
    alarms.arm("a2", NOW + timedelta(hours=8), METADATA)

    assert seen == [frozenset({"a1"}), frozenset()]


def test_other_jobs_are_not_alarms(alarms):
    seen = []
    alarms.subscribe(seen.append)

    alarms.scheduler.add_job(print, "cron", hour=12, id="daily_retime")

    assert alarms.armed_ids() == frozenset()
    assert seen == []


def test_fire_calls_listeners(alarms):
    fired = []
    alarms.on_fire(lambda alarm_id, metadata: fired.append((alarm_id, metadata)))
    alarms.on_fire(lambda alarm_id, metadata: 1 / 0)

    alarms._fire("a1", METADATA)

    assert fired == [("a1", METADATA)]


def test_external_removal_reaches_coordinator(alarms):
    coordinator = AlarmRetimingCoordinator(
        FakeTimeService(), alarms, MemorySettingsStore(), clock=lambda: NOW, tz=timezone.utc
    )
    location = SavedLocation(display_name="Lisbon", latitude=38.72, longitude=-9.14)

    assert coordinator.activate(location, TimingPolicy.CIVIL_DAWN)
    assert alarms.armed_ids() == {coordinator.alarm.alarm_id}

    alarms.cancel(coordinator.alarm.alarm_id)

    # the notification may be deferred while an earlier one holds the coordinator
    deadline = time.monotonic() + 2
    while coordinator.state is not CoordinatorState.IDLE and time.monotonic() < deadline:
        time.sleep(0.01)
    assert coordinator.state is CoordinatorState.IDLE
    coordinator.close()
