"""Map a timing policy onto one instant of a day's sun times."""

from datetime import datetime, timedelta

from .models import SunTimes, TimingPolicy

AFTER_SUNRISE_OFFSET = timedelta(minutes=10)

# One entry per policy, no fallback
_RESOLVERS = {
    TimingPolicy.NAUTICAL_DAWN: lambda st: st.nautical_dawn,
    TimingPolicy.CIVIL_DAWN: lambda st: st.civil_dawn,
    TimingPolicy.AT_SUNRISE: lambda st: st.sunrise,
    TimingPolicy.AFTER_SUNRISE: lambda st: st.sunrise + AFTER_SUNRISE_OFFSET,
}

_missing = set(TimingPolicy) - set(_RESOLVERS)
if _missing:
    raise RuntimeError(f"No resolver for timing policies: {sorted(p.name for p in _missing)}")


def resolve(sun_times: SunTimes, policy: TimingPolicy) -> datetime:
    """Return the wake instant for ``policy`` on the day described by ``sun_times``."""
    return _RESOLVERS[policy](sun_times)


def resolve_all(sun_times: SunTimes) -> dict:
    """Resolve every policy, keyed by policy (for display)."""
    return {policy: resolve(sun_times, policy) for policy in TimingPolicy}
