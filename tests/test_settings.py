"""Tests for the settings stores and saved locations."""

import json

import pytest

from sunrise.locations import LOCATIONS_KEY, REPEATS_KEY, TIMING_KEY, LocationStore
from sunrise.models import SavedLocation, TimingPolicy
from sunrise.settings_store import JsonSettingsStore, MemorySettingsStore


@pytest.fixture
def settings_path(tmp_path):
    return tmp_path / "data" / "settings.json"


class TestJsonSettingsStore:
    def test_values_survive_reload(self, settings_path):
        store = JsonSettingsStore(settings_path)
        store.set("timing", "Civil Dawn")
        store.set("locations", [{"display_name": "Oslo"}])

        reloaded = JsonSettingsStore(settings_path)

        assert reloaded.get("timing") == "Civil Dawn"
        assert reloaded.get("locations") == [{"display_name": "Oslo"}]
        assert json.loads(settings_path.read_text())["timing"] == "Civil Dawn"

    def test_delete(self, settings_path):
        store = JsonSettingsStore(settings_path)
        store.set("alarm", {"alarm_id": "a"})
        store.delete("alarm")
        store.delete("never-set")

        assert JsonSettingsStore(settings_path).get("alarm", "gone") == "gone"

    def test_corrupt_file_starts_empty(self, settings_path):
        settings_path.parent.mkdir(parents=True)
        settings_path.write_text("{not json")

        store = JsonSettingsStore(settings_path)

        assert store.get("timing") is None

    def test_non_object_file_starts_empty(self, settings_path):
        settings_path.parent.mkdir(parents=True)
        settings_path.write_text("[1, 2]")

        assert JsonSettingsStore(settings_path).get("locations", []) == []

    def test_returned_values_are_copies(self, settings_path):
        store = JsonSettingsStore(settings_path)
        store.set("locations", [])

        store.get("locations").append("oops")

        assert store.get("locations") == []


class TestLocationStore:
    @pytest.fixture
    def store(self):
        return LocationStore(MemorySettingsStore())

    def test_first_location_is_selected(self, store):
        added = store.add(SavedLocation(display_name="Lisbon", latitude=38.72, longitude=-9.14))

        assert added.is_selected
        assert store.selected.identifier == added.identifier

    def test_at_most_one_location_selected(self, store):
        lisbon = store.add(SavedLocation(display_name="Lisbon", latitude=38.72, longitude=-9.14))
        oslo = store.add(SavedLocation(display_name="Oslo", latitude=59.91, longitude=10.75))
        assert store.selected.identifier == lisbon.identifier

        store.select(oslo.identifier)
        assert [loc.display_name for loc in store.locations() if loc.is_selected] == ["Oslo"]

        store.add(SavedLocation(display_name="Quito", latitude=-0.18, longitude=-78.47, is_selected=True))
        assert [loc.display_name for loc in store.locations() if loc.is_selected] == ["Quito"]

    def test_select_unknown_location(self, store):
        store.add(SavedLocation(display_name="Lisbon", latitude=38.72, longitude=-9.14))

        assert store.select("missing") is None
        assert store.selected.display_name == "Lisbon"

    def test_delete(self, store):
        lisbon = store.add(SavedLocation(display_name="Lisbon", latitude=38.72, longitude=-9.14))

        assert store.delete(lisbon.identifier) is True
        assert store.delete(lisbon.identifier) is False
        assert store.locations() == []
        assert store.selected is None

    def test_invalid_saved_entries_are_skipped(self):
        settings = MemorySettingsStore({LOCATIONS_KEY: [
            {"display_name": "Broken"},
            {"identifier": "x", "display_name": "Far", "latitude": 95, "longitude": 0},
            {"identifier": "y", "display_name": "Oslo", "latitude": 59.91, "longitude": 10.75},
        ]})

        assert [loc.display_name for loc in LocationStore(settings).locations()] == ["Oslo"]

    def test_legacy_timing_is_migrated(self):
        settings = MemorySettingsStore({TIMING_KEY: "Before Sunrise"})

        store = LocationStore(settings)

        assert settings.get(TIMING_KEY) == "Civil Dawn"
        assert store.timing is TimingPolicy.CIVIL_DAWN

    def test_timing_defaults_to_sunrise(self, store):
        assert store.timing is TimingPolicy.AT_SUNRISE

        store.timing = TimingPolicy.NAUTICAL_DAWN
        assert store.settings.get(TIMING_KEY) == "Nautical Dawn"

    def test_auto_repeat_defaults_on(self, store):
        assert store.auto_repeat is True

        store.auto_repeat = False
        assert store.auto_repeat is False
        assert store.settings.get(REPEATS_KEY) is False

    @pytest.mark.parametrize("stored", [None, {"a": 1}, "Lisbon", 3, [7, None, "x"]])
    def test_unusable_saved_locations_read_as_empty(self, stored):
        store = LocationStore(MemorySettingsStore({LOCATIONS_KEY: stored}))

        assert store.locations() == []
        assert store.selected is None

    @pytest.mark.parametrize("stored", [5, True, ["Civil Dawn"], {"value": "Civil Dawn"}])
    def test_non_string_timing_reads_as_default(self, stored):
        store = LocationStore(MemorySettingsStore({TIMING_KEY: stored}))

        assert store.timing is TimingPolicy.AT_SUNRISE
