"""
Alignment primitives over irregular observation series.

All functions are pure: no I/O and no shared state. Missing data is never
an error here; every function degrades to None.
"""

from collections import Counter
from datetime import date

from macro_regime_engine.models import Series, SeriesSet


def latest_valid(series: Series) -> tuple[date, float] | None:
    """Most recent (date, value) pair carrying a value, or None."""
    for obs in reversed(series.observations):
        if obs.value is not None:
            return obs.date, obs.value
    return None


def _latest_valid_index(series: Series) -> int | None:
    for i in range(len(series.observations) - 1, -1, -1):
        if series.observations[i].value is not None:
            return i
    return None


def change_from_n_back(series: Series, n: int) -> float | None:
    """
    Latest valid value minus the value ``n`` valid observations earlier.

    Counts observations with values, not calendar days: gaps and missing
    readings do not consume the count.

    Returns None when fewer than ``n`` valid observations precede the latest one.
    """
    if n < 1:
        raise ValueError(f"n must be >= 1, got {n}")

    latest_index = _latest_valid_index(series)
    if latest_index is None:
        return None

    latest_value = series.observations[latest_index].value
    count = 0
    for i in range(latest_index - 1, -1, -1):
        value = series.observations[i].value
        if value is not None:
            count += 1
            if count == n:
                return latest_value - value
    return None


def value_at_date(series: Series, target: date) -> float | None:
    """
    Step-function lookup: last valid value dated on or before ``target``.

    Scans forward and stops at the first observation after ``target``, so the
    series must be ascending.
    """
    result = None
    for obs in series.observations:
        if obs.date > target:
            break
        if obs.value is not None:
            result = obs.value
    return result


def one_year_before(day: date) -> date:
    """Same calendar day one year earlier; Feb 29 maps to Feb 28."""
    try:
        return day.replace(year=day.year - 1)
    except ValueError:
        return day.replace(year=day.year - 1, day=28)


def year_over_year_change(series: Series) -> float | None:
    """
    Percent change of the latest valid value against the value one year earlier.

    None when no year-ago value exists or it is zero.
    """
    latest = latest_valid(series)
    if latest is None:
        return None

    latest_date, latest_value = latest
    year_ago_value = value_at_date(series, one_year_before(latest_date))
    if year_ago_value is None or year_ago_value == 0:
        return None

    return (latest_value - year_ago_value) / year_ago_value * 100


def latest_common_date(series_set: SeriesSet) -> date | None:
    """Latest date on which every series in the set has a value."""
    if not series_set:
        return None

    counts: Counter[date] = Counter()
    for series in series_set.values():
        # A date counts once per series even if duplicated
        counts.update({obs.date for obs in series.observations if obs.value is not None})

    required = len(series_set)
    common = [day for day, count in counts.items() if count == required]
    return max(common) if common else None


def align_to_date(series_set: SeriesSet, target: date) -> dict[str, float | None]:
    """Value of every series as of ``target`` (step-function lookback)."""
    return {
        series_id: value_at_date(series, target)
        for series_id, series in series_set.items()
    }
