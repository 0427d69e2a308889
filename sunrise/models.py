"""Data model for sun times, timing policies, locations and the armed alarm."""

import uuid
from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
from typing import Optional

from .errors import InvalidCoordinates, MalformedResponse


class TimingPolicy(Enum):
    """When to wake relative to sunrise."""

    NAUTICAL_DAWN = "Nautical Dawn"
    CIVIL_DAWN = "Civil Dawn"
    AT_SUNRISE = "Sunrise"
    AFTER_SUNRISE = "After Sunrise"

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]

    @property
    def approximate_minutes_before(self) -> int:
        """Approximate minutes before sunrise (for display only)."""
        return _APPROXIMATE_MINUTES_BEFORE[self]

    @property
    def subtitle(self) -> str:
        minutes = self.approximate_minutes_before
        if minutes > 0:
            return f"~{minutes} min before sunrise"
        elif minutes < 0:
            return f"~{abs(minutes)} min after sunrise"
        return "At sunrise"

    @property
    def is_before(self) -> bool:
        """True for every policy that wakes at or before sunrise."""
        return self is not TimingPolicy.AFTER_SUNRISE

    @classmethod
    def parse(cls, raw: Optional[str], default: "TimingPolicy" = None) -> "TimingPolicy":
        """
        Parse a stored policy value.

        Accepts enum values ("Civil Dawn"), enum names ("CIVIL_DAWN") and the
        legacy "Before Sunrise" value, which now means civil dawn.
        """
        if default is None:
            default = cls.AT_SUNRISE
        if not raw or not isinstance(raw, str):
            return default
        if raw == "Before Sunrise":
            return cls.CIVIL_DAWN
        try:
            return cls(raw)
        except ValueError:
            pass
        try:
            return cls[raw.upper()]
        except KeyError:
            return default

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "value": self.value,
            "description": self.description,
            "subtitle": self.subtitle,
            "is_before": self.is_before,
        }


_DESCRIPTIONS = {
    TimingPolicy.NAUTICAL_DAWN: "Sky begins to lighten",
    TimingPolicy.CIVIL_DAWN: "Soft pre-sunrise glow",
    TimingPolicy.AT_SUNRISE: "Sun crosses the horizon",
    TimingPolicy.AFTER_SUNRISE: "10 minutes after sunrise",
}

_APPROXIMATE_MINUTES_BEFORE = {
    TimingPolicy.NAUTICAL_DAWN: 60,
    TimingPolicy.CIVIL_DAWN: 30,
    TimingPolicy.AT_SUNRISE: 0,
    TimingPolicy.AFTER_SUNRISE: -10,
}


class CoordinatorState(Enum):
    """Lifecycle of the single alarm slot."""

    IDLE = "idle"
    RESOLVING = "resolving"
    ARMED = "armed"


@dataclass(frozen=True)
class SunTimes:
    """
    Twilight timestamps for one location and one calendar day.

    All instants are timezone-aware and strictly ascending in field order.
    """

    nautical_dawn: datetime
    civil_dawn: datetime
    sunrise: datetime
    solar_noon: datetime
    sunset: datetime
    civil_dusk: datetime
    nautical_dusk: datetime

    def validate(self) -> "SunTimes":
        """Raise MalformedResponse unless the ordering invariant holds."""
        previous = None
        for f in fields(self):
            value = getattr(self, f.name)
            if value.tzinfo is None or value.utcoffset() is None:
                raise MalformedResponse(f"{f.name} is not timezone-aware")
            if previous is not None and value <= previous[1]:
                raise MalformedResponse(f"{f.name} is not after {previous[0]}")
            previous = (f.name, value)
        return self

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name).isoformat() for f in fields(self)}


@dataclass
class SavedLocation:
    """A named place the user wakes up at."""

    display_name: str
    latitude: float
    longitude: float
    is_selected: bool = False
    identifier: str = field(default_factory=lambda: uuid.uuid4().hex)

    def __post_init__(self):
        self.latitude = float(self.latitude)
        self.longitude = float(self.longitude)
        if not -90 <= self.latitude <= 90:
            raise InvalidCoordinates("Latitude must be between -90 and 90")
        if not -180 <= self.longitude <= 180:
            raise InvalidCoordinates("Longitude must be between -180 and 180")

    def to_dict(self) -> dict:
        return {
            "identifier": self.identifier,
            "display_name": self.display_name,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "is_selected": self.is_selected,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SavedLocation":
        return cls(
            display_name=data["display_name"],
            latitude=data["latitude"],
            longitude=data["longitude"],
            is_selected=bool(data.get("is_selected", False)),
            identifier=data["identifier"],
        )


@dataclass(frozen=True)
class AlarmMetadata:
    """Presentation data handed to the scheduler with every alarm."""

    is_before: bool = True
    location_name: str = ""
    is_test: bool = False

    @property
    def title(self) -> str:
        return "Sunrise Soon" if self.is_before else "Sunrise!"


@dataclass
class ScheduledAlarm:
    """The one alarm the coordinator currently has armed."""

    alarm_id: str
    target: datetime
    location_label: str
    policy: Optional[TimingPolicy] = None  # None for a test alarm
    auto_repeat: bool = False
    location: Optional[SavedLocation] = None

    def to_dict(self) -> dict:
        return {
            "alarm_id": self.alarm_id,
            "target": self.target.isoformat(),
            "location_label": self.location_label,
            "policy": self.policy.value if self.policy else None,
            "auto_repeat": self.auto_repeat,
            "location": self.location.to_dict() if self.location else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ScheduledAlarm":
        """Raises KeyError, TypeError or ValueError on an unusable record."""
        policy = data.get("policy")
        location = data.get("location")
        target = datetime.fromisoformat(data["target"])
        if target.tzinfo is None:
            raise ValueError(f"Alarm target {data['target']} has no offset")
        return cls(
            alarm_id=data["alarm_id"],
            target=target,
            location_label=data.get("location_label", ""),
            # Unknown policies are rejected, never relabelled
            policy=TimingPolicy(policy) if policy is not None else None,
            auto_repeat=bool(data.get("auto_repeat", False)),
            location=SavedLocation.from_dict(location) if location else None,
        )
