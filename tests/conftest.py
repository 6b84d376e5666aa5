"""Shared test fixtures for the regime engine test suite."""

from __future__ import annotations

from datetime import date
from typing import Callable

import pandas as pd
import pytest

from macro_regime_engine.config import Settings
from macro_regime_engine.models import Observation, Series


SeriesBuilder = Callable[..., Series]


def build_series(series_id: str, points: list[tuple[str | date, float | None]]) -> Series:
    """Series from (date, value) pairs; string dates are ISO formatted."""
    return Series(
        series_id=series_id,
        observations=tuple(
            Observation(
                date=date.fromisoformat(d) if isinstance(d, str) else d,
                value=v,
            )
            for d, v in points
        ),
    )


@pytest.fixture()
def make_series() -> SeriesBuilder:
    return build_series


@pytest.fixture()
def settings() -> Settings:
    """Settings with a dummy key and no rate-limit delay."""
    return Settings(
        fred_api_key="test-key",
        min_request_interval=0.0,
        request_timeout=5.0,
        cache_ttl_hours=24.0,
        day_window=20,
        stale_threshold_days=45,
        macro_years=5,
    )


@pytest.fixture()
def macro_series_set() -> dict[str, Series]:
    """
    Thirty business days of daily series plus fourteen months of CPI.

    DGS10 rises 0.01 per day from 4.00, DGS2 is flat at 4.50 (inverted curve),
    VIXCLS rises 0.1 per day from 15.0, the HY spread rises 0.01 per day from 3.00.
    """
    days = [ts.date() for ts in pd.bdate_range("2024-01-01", periods=30)]
    months = [ts.date() for ts in pd.date_range("2023-01-01", periods=14, freq="MS")]

    return {
        "DGS10": build_series("DGS10", [(d, round(4.0 + 0.01 * i, 4)) for i, d in enumerate(days)]),
        "DGS2": build_series("DGS2", [(d, 4.5) for d in days]),
        "VIXCLS": build_series("VIXCLS", [(d, round(15.0 + 0.1 * i, 4)) for i, d in enumerate(days)]),
        "BAMLH0A0HYM2": build_series(
            "BAMLH0A0HYM2", [(d, round(3.0 + 0.01 * i, 4)) for i, d in enumerate(days)]
        ),
        "CPIAUCSL": build_series("CPIAUCSL", [(d, 300.0 + i) for i, d in enumerate(months)]),
    }
