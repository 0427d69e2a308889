"""Pytest configuration: import path, fixed clock and fake collaborators."""

import os
import sys
from datetime import timezone

import pytest

# Ensure project root is on sys.path so that
# imports like `from sunrise...` resolve.
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from sunrise.coordinator import AlarmRetimingCoordinator  # noqa: E402
from sunrise.models import SavedLocation  # noqa: E402
from sunrise.settings_store import MemorySettingsStore  # noqa: E402
from tests.fakes import NOW, FakeTimeService, RecordingScheduler  # noqa: E402


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def settings():
    return MemorySettingsStore()


@pytest.fixture
def time_service():
    return FakeTimeService()


@pytest.fixture
def scheduler():
    return RecordingScheduler()


@pytest.fixture
def location():
    return SavedLocation(display_name="Lisbon", latitude=38.72, longitude=-9.14)


@pytest.fixture
def make_coordinator(time_service, scheduler, settings, clock):
    """Build a coordinator over the shared fakes (call again to simulate a restart)."""
    created = []

    def factory():
        coordinator = AlarmRetimingCoordinator(
            time_service, scheduler, settings, clock=clock, tz=timezone.utc
        )
        created.append(coordinator)
        return coordinator

    yield factory

    for coordinator in created:
        coordinator.close()


@pytest.fixture
def coordinator(make_coordinator):
    return make_coordinator()
