"""Data models."""

from macro_regime_engine.models.market_data import (
    FeatureVector,
    Observation,
    Regime,
    RegimeVerdict,
    Series,
    SeriesSet,
)

__all__ = [
    "Observation",
    "Series",
    "SeriesSet",
    "FeatureVector",
    "Regime",
    "RegimeVerdict",
]
