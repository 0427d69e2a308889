"""Contracts for the collaborators the coordinator depends on."""

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Any, Callable, FrozenSet

from .models import AlarmMetadata, SunTimes

ArmedIdsCallback = Callable[[FrozenSet[str]], None]


class TimeService(ABC):
    """Source of precomputed twilight timestamps."""

    @abstractmethod
    def fetch_sun_times(self, latitude: float, longitude: float, day: date) -> SunTimes:
        """
        Fetch sun times for ``day`` at the given coordinates.

        Raises NetworkFailure, FetchTimeout or MalformedResponse.
        """


class AlarmScheduler(ABC):
    """Platform capability that fires an alarm at an instant."""

    @abstractmethod
    def arm(self, alarm_id: str, instant: datetime, metadata: AlarmMetadata) -> None:
        """Arm one alarm. Raises SchedulerRejected."""

    @abstractmethod
    def cancel(self, alarm_id: str) -> None:
        """Cancel an alarm. Cancelling an unknown id is not an error."""

    @abstractmethod
    def armed_ids(self) -> FrozenSet[str]:
        """Identifiers of every alarm currently armed."""

    @abstractmethod
    def subscribe(self, callback: ArmedIdsCallback) -> Callable[[], None]:
        """
        Call ``callback`` with the armed identifiers whenever they change.

        Returns a function that removes the subscription.
        """


class SettingsStore(ABC):
    """Durable key-value settings, last write wins per key."""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        pass
