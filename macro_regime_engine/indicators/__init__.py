"""Alignment, feature derivation and regime classification."""

from macro_regime_engine.indicators.align import (
    align_to_date,
    change_from_n_back,
    latest_common_date,
    latest_valid,
    value_at_date,
    year_over_year_change,
)
from macro_regime_engine.indicators.features import derive_features, format_change, format_value
from macro_regime_engine.indicators.regime import RULES, classify, risk_color, risk_label

__all__ = [
    "latest_valid",
    "change_from_n_back",
    "value_at_date",
    "year_over_year_change",
    "latest_common_date",
    "align_to_date",
    "derive_features",
    "format_value",
    "format_change",
    "classify",
    "risk_label",
    "risk_color",
    "RULES",
]
