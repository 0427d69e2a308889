"""Saved locations, selection and alarm preferences."""

from typing import Optional

from .errors import InvalidCoordinates
from .models import SavedLocation, TimingPolicy
from .ports import SettingsStore

# Settings keys
LOCATIONS_KEY = "locations"
TIMING_KEY = "timing"
REPEATS_KEY = "repeats"


class LocationStore:
    """Saved locations and alarm preferences on top of a settings store."""

    def __init__(self, settings: SettingsStore):
        self.settings = settings
        self._migrate_timing()

    def _migrate_timing(self):
        """Rewrite the legacy "Before Sunrise" timing as civil dawn."""
        raw = self.settings.get(TIMING_KEY)
        if raw == "Before Sunrise":
            self.settings.set(TIMING_KEY, TimingPolicy.CIVIL_DAWN.value)
            print("[Settings] Migrated timing 'Before Sunrise' -> 'Civil Dawn'")

    # --- Locations ---

    def locations(self) -> list[SavedLocation]:
        items = self.settings.get(LOCATIONS_KEY, [])
        if not isinstance(items, list):
            print(f"[Settings] Ignoring saved locations: expected a list, got {type(items).__name__}")
            return []

        locations = []
        for item in items:
            try:
                locations.append(SavedLocation.from_dict(item))
            except (KeyError, TypeError, ValueError, InvalidCoordinates) as e:
                print(f"[Settings] Skipping invalid saved location {item!r}: {e}")
        return locations

    def _save_locations(self, locations: list[SavedLocation]):
        self.settings.set(LOCATIONS_KEY, [loc.to_dict() for loc in locations])

    def get(self, identifier: str) -> Optional[SavedLocation]:
        for location in self.locations():
            if location.identifier == identifier:
                return location
        return None

    @property
    def selected(self) -> Optional[SavedLocation]:
        for location in self.locations():
            if location.is_selected:
                return location
        return None

    def add(self, location: SavedLocation) -> SavedLocation:
        """
        Save a location.

        The first saved location is selected automatically; selecting an
        added location clears the flag everywhere else.
        """
        locations = self.locations()
        if not locations:
            location.is_selected = True
        if location.is_selected:
            for other in locations:
                other.is_selected = False
        locations.append(location)
        self._save_locations(locations)
        return location

    def delete(self, identifier: str) -> bool:
        locations = self.locations()
        remaining = [loc for loc in locations if loc.identifier != identifier]
        if len(remaining) == len(locations):
            return False
        self._save_locations(remaining)
        return True

    def select(self, identifier: str) -> Optional[SavedLocation]:
        """Select one location and deselect all others in the same write."""
        locations = self.locations()
        chosen = None
        for location in locations:
            location.is_selected = location.identifier == identifier
            if location.is_selected:
                chosen = location
        if chosen is None:
            return None
        self._save_locations(locations)
        return chosen

    # --- Preferences ---

    @property
    def timing(self) -> TimingPolicy:
        return TimingPolicy.parse(self.settings.get(TIMING_KEY))

    @timing.setter
    def timing(self, policy: TimingPolicy):
        self.settings.set(TIMING_KEY, policy.value)

    @property
    def auto_repeat(self) -> bool:
        # Defaults to on when never set
        return bool(self.settings.get(REPEATS_KEY, True))

    @auto_repeat.setter
    def auto_repeat(self, enabled: bool):
        self.settings.set(REPEATS_KEY, bool(enabled))
