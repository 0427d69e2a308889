"""Sunrise alarm service: sun times, timing policies and daily retiming."""

import os
from pathlib import Path

# Base paths
SUNRISE_DIR = Path(__file__).parent
PROJECT_DIR = SUNRISE_DIR.parent
DATA_DIR = PROJECT_DIR / "data"
SETTINGS_FILE = Path(os.environ.get("SUNRISE_SETTINGS", str(DATA_DIR / "sunrise_settings.json")))
