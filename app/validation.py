"""Validation of location and preference input from API requests."""

from dataclasses import dataclass
from typing import Optional

from sunrise.errors import InvalidCoordinates
from sunrise.models import TimingPolicy


@dataclass
class ValidationResult:
    """Result of a validation check."""
    is_valid: bool
    error_message: Optional[str] = None
    kind: Optional[str] = None


def _to_float(value) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def validate_coordinates(latitude, longitude) -> ValidationResult:
    """
    Validate manually entered coordinates.
    Hard limits: latitude -90..90, longitude -180..180
    """
    lat = _to_float(latitude)
    lon = _to_float(longitude)

    if lat is None or lon is None or not -90 <= lat <= 90 or not -180 <= lon <= 180:
        return ValidationResult(
            is_valid=False,
            error_message="Please enter valid coordinates",
            kind=InvalidCoordinates.kind,
        )

    return ValidationResult(is_valid=True)


def validate_location_name(name) -> ValidationResult:
    """Location names must be non-empty."""
    if not isinstance(name, str) or not name.strip():
        return ValidationResult(
            is_valid=False,
            error_message="Please enter a location name",
        )
    return ValidationResult(is_valid=True)


def validate_policy(raw) -> ValidationResult:
    """Accept a policy by value ("Civil Dawn") or name ("CIVIL_DAWN")."""
    if isinstance(raw, str):
        try:
            TimingPolicy(raw)
            return ValidationResult(is_valid=True)
        except ValueError:
            if raw.upper() in TimingPolicy.__members__:
                return ValidationResult(is_valid=True)

    choices = ", ".join(p.value for p in TimingPolicy)
    return ValidationResult(
        is_valid=False,
        error_message=f"Unknown timing policy. Use one of: {choices}",
    )


def validate_delay(raw) -> ValidationResult:
    """Test alarm delay: 1-3600 seconds."""
    if isinstance(raw, bool) or not isinstance(raw, (int, float)) or not 1 <= raw <= 3600:
        return ValidationResult(
            is_valid=False,
            error_message="delay_seconds must be between 1 and 3600",
        )
    return ValidationResult(is_valid=True)
