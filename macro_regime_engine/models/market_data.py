"""Data models for macro series, features and regime verdicts."""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum

import pandas as pd


@dataclass(frozen=True)
class Observation:
    """Single observation from a FRED series. Missing readings have value None."""

    date: date
    value: float | None


@dataclass(frozen=True)
class Series:
    """Observations for one series, ascending by date."""

    series_id: str
    observations: tuple[Observation, ...] = ()

    def __len__(self) -> int:
        return len(self.observations)

    def valid_count(self) -> int:
        """Number of observations carrying a value."""
        return sum(1 for obs in self.observations if obs.value is not None)

    def to_frame(self) -> pd.DataFrame:
        """DataFrame with date index and 'value' column, NaN where missing."""
        if not self.observations:
            return pd.DataFrame(columns=["value"])

        df = pd.DataFrame(
            {
                "date": pd.to_datetime([obs.date for obs in self.observations]),
                "value": [obs.value for obs in self.observations],
            }
        )
        df["value"] = pd.to_numeric(df["value"], errors="coerce")
        df.set_index("date", inplace=True)
        return df


# Mapping series id -> Series, built once per classification request
SeriesSet = dict[str, Series]


class Regime(str, Enum):
    """Macro risk posture."""

    RISK_OFF = "RISK_OFF"
    TIGHTENING = "TIGHTENING"
    RISK_ON = "RISK_ON"
    NEUTRAL = "NEUTRAL"


@dataclass(frozen=True)
class FeatureVector:
    """Engineered features for one classification request."""

    as_of: date
    latest: dict[str, float | None] = field(default_factory=dict)
    latest_dates: dict[str, date | None] = field(default_factory=dict)
    windowed_change: dict[str, float | None] = field(default_factory=dict)
    derived_spread: float | None = None
    stale_flags: dict[str, bool] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "asOf": self.as_of.isoformat(),
            "latest": dict(self.latest),
            "latestDates": {
                k: d.isoformat() if d is not None else None
                for k, d in self.latest_dates.items()
            },
            "windowedChange": dict(self.windowed_change),
            "derivedSpread": self.derived_spread,
            "staleFlags": dict(self.stale_flags),
        }


@dataclass(frozen=True)
class RegimeVerdict:
    """Classifier output."""

    label: Regime
    active_conditions: tuple[str, ...]
    explanation: str

    def to_dict(self) -> dict:
        return {
            "label": self.label.value,
            "activeConditions": list(self.active_conditions),
            "explanation": self.explanation,
        }
