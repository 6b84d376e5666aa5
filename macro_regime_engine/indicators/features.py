"""Derive the feature vector used by the regime classifier."""

import logging
from datetime import date

from macro_regime_engine.config import LONG_RATE_ID, LOW_FREQUENCY_IDS, SHORT_RATE_ID
from macro_regime_engine.indicators.align import (
    change_from_n_back,
    latest_common_date,
    latest_valid,
    year_over_year_change,
)
from macro_regime_engine.models import FeatureVector, SeriesSet


logger = logging.getLogger(__name__)

DEFAULT_DAY_WINDOW = 20
DEFAULT_STALE_THRESHOLD_DAYS = 45


def derive_features(
    series_set: SeriesSet,
    day_window: int = DEFAULT_DAY_WINDOW,
    stale_threshold_days: int = DEFAULT_STALE_THRESHOLD_DAYS,
    *,
    low_frequency_ids: tuple[str, ...] = LOW_FREQUENCY_IDS,
    long_rate_id: str = LONG_RATE_ID,
    short_rate_id: str = SHORT_RATE_ID,
    today: date | None = None,
) -> FeatureVector:
    """
    Combine alignment primitives into a FeatureVector.

    Features:
    - latest / latest_dates: most recent valid value per series
    - windowed_change: change over ``day_window`` valid points, or
      year-over-year percent change for low-frequency series
    - derived_spread: long rate minus short rate
    - stale_flags: low-frequency series whose last value is more than
      ``stale_threshold_days`` before ``as_of``

    ``as_of`` is the latest date shared by all series, else the latest date
    of any series, else ``today`` (defaults to the current date).
    """
    if day_window < 1:
        raise ValueError(f"day_window must be >= 1, got {day_window}")
    if stale_threshold_days < 0:
        raise ValueError(f"stale_threshold_days must be >= 0, got {stale_threshold_days}")

    latest: dict[str, float | None] = {}
    latest_dates: dict[str, date | None] = {}
    windowed_change: dict[str, float | None] = {}

    for series_id, series in series_set.items():
        latest_val = latest_valid(series)
        latest_dates[series_id], latest[series_id] = latest_val if latest_val else (None, None)

        if series_id in low_frequency_ids:
            windowed_change[series_id] = year_over_year_change(series)
        else:
            windowed_change[series_id] = change_from_n_back(series, day_window)

    long_rate = latest.get(long_rate_id)
    short_rate = latest.get(short_rate_id)
    derived_spread = None
    if long_rate is not None and short_rate is not None:
        derived_spread = long_rate - short_rate

    as_of = latest_common_date(series_set)
    if as_of is None:
        known = [d for d in latest_dates.values() if d is not None]
        if known:
            as_of = max(known)
            logger.debug(f"No common date across series, using latest series date {as_of}")
        else:
            as_of = today or date.today()
            logger.debug(f"No valid observations, using {as_of} as as-of date")

    stale_flags: dict[str, bool] = {}
    for series_id in low_frequency_ids:
        if series_id not in series_set:
            continue
        last_date = latest_dates[series_id]
        # No valid value means no age to compare
        stale = last_date is not None and (as_of - last_date).days > stale_threshold_days
        stale_flags[series_id] = stale
        if stale:
            logger.info(f"{series_id} is stale: last value {last_date}, as of {as_of}")

    return FeatureVector(
        as_of=as_of,
        latest=latest,
        latest_dates=latest_dates,
        windowed_change=windowed_change,
        derived_spread=derived_spread,
        stale_flags=stale_flags,
    )


def format_value(value: float | None, decimals: int = 2) -> str:
    """Format a value for display, "N/A" when missing."""
    if value is None:
        return "N/A"
    return f"{value:.{decimals}f}"


def format_change(value: float | None, decimals: int = 2) -> str:
    """Format a change with an explicit sign."""
    if value is None:
        return "N/A"
    prefix = "+" if value >= 0 else ""
    return f"{prefix}{value:.{decimals}f}"
