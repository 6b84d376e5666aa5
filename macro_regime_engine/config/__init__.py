"""Configuration."""

from macro_regime_engine.config.settings import (
    CREDIT_SPREAD_ID,
    LONG_RATE_ID,
    LOW_FREQUENCY_IDS,
    MACRO_SERIES,
    PROFILE,
    SHORT_RATE_ID,
    VOLATILITY_ID,
    Settings,
)

__all__ = [
    "Settings",
    "MACRO_SERIES",
    "PROFILE",
    "LONG_RATE_ID",
    "SHORT_RATE_ID",
    "VOLATILITY_ID",
    "CREDIT_SPREAD_ID",
    "LOW_FREQUENCY_IDS",
]
