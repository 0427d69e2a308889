"""Error taxonomy for sun time fetching and alarm scheduling."""


class SunriseError(Exception):
    """Base class for every failure the coordinator surfaces."""

    kind = "error"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__name__

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message}


class LocationUnavailable(SunriseError):
    """No selected location when an activation was requested."""

    kind = "location_unavailable"


class NetworkFailure(SunriseError):
    """The time service could not be reached or answered with an HTTP error."""

    kind = "network_failure"


class FetchTimeout(NetworkFailure):
    """The time service did not answer within FETCH_TIMEOUT."""

    kind = "timeout"


class MalformedResponse(SunriseError):
    """The time service payload is missing or has unparseable fields."""

    kind = "malformed_response"


class SchedulerRejected(SunriseError):
    """The alarm scheduler refused to arm (past instant, scheduler down...)."""

    kind = "scheduler_rejected"


class InvalidCoordinates(SunriseError):
    """Latitude/longitude outside the valid ranges."""

    kind = "invalid_coordinates"
