"""Key-value settings persisted as a JSON file."""

import copy
import json
import threading
from pathlib import Path
from typing import Any, Optional

from . import SETTINGS_FILE
from .ports import SettingsStore


class JsonSettingsStore(SettingsStore):
    """
    Flat JSON object on disk, loaded once and rewritten on every change.

    Last write wins per key; there are no multi-key transactions.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else SETTINGS_FILE
        self._lock = threading.Lock()
        self._data = self._load()

    def _load(self) -> dict:
        if not self.path.exists():
            return {}

        try:
            with open(self.path, "r") as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            print(f"[Settings] Error loading {self.path}: {e}")
            return {}

        if not isinstance(data, dict):
            print(f"[Settings] Ignoring {self.path}: not a JSON object")
            return {}
        return data

    def _save(self) -> bool:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)

            with open(self.path, "w") as f:
                json.dump(self._data, f, indent=2)
                f.write("\n")
            return True
        except IOError as e:
            print(f"[Settings] Error saving {self.path}: {e}")
            return False

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            if key not in self._data:
                return default
            return copy.deepcopy(self._data[key])

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = copy.deepcopy(value)
            self._save()

    def delete(self, key: str) -> None:
        with self._lock:
            if self._data.pop(key, None) is not None:
                self._save()


class MemorySettingsStore(SettingsStore):
    """Settings kept in a dict, for tests and one-off scripts."""

    def __init__(self, initial: Optional[dict] = None):
        self._data = copy.deepcopy(initial) if initial else {}
        self._lock = threading.Lock()

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return copy.deepcopy(self._data.get(key, default))

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = copy.deepcopy(value)

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)
