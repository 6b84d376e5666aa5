"""
Deterministic macro regime classification.

Rules (evaluated in order, first match wins):
1. RISK_OFF if volatility is elevated and rising AND the curve is inverted
2. TIGHTENING if long rates are rising AND credit spreads are widening
3. RISK_ON if volatility is falling AND the curve is upward sloping
4. NEUTRAL otherwise

No hysteresis. Each call depends only on the feature vector it is given.
A missing feature never satisfies a threshold.
"""

from dataclasses import dataclass
from typing import Callable

from macro_regime_engine.config import CREDIT_SPREAD_ID, LONG_RATE_ID, VOLATILITY_ID
from macro_regime_engine.models import FeatureVector, Regime, RegimeVerdict


VOL_LEVEL_THRESHOLD = 18.0
VOL_CHANGE_THRESHOLD = 0.10


@dataclass(frozen=True)
class Signals:
    """Individual sub-signals read from a feature vector."""

    volatility_signal: bool
    vol_falling: bool
    curve_inverted: bool
    curve_normal: bool
    rates_rising: bool
    spread_widening: bool


# Display order: volatility, then curve, then rates/spread
CONDITION_TEXT: tuple[tuple[str, str], ...] = (
    ("volatility_signal", "Volatility elevated and rising (risk-off signal)"),
    ("vol_falling", "Volatility falling (risk-on signal)"),
    ("curve_inverted", "Inverted yield curve (recession warning)"),
    ("curve_normal", "Normal yield curve"),
    ("rates_rising", "Long rates rising"),
    ("spread_widening", "Credit spreads widening"),
)


@dataclass(frozen=True)
class RegimeRule:
    label: Regime
    predicate: Callable[[Signals], bool]
    explanation: str


RULES: tuple[RegimeRule, ...] = (
    RegimeRule(
        Regime.RISK_OFF,
        lambda s: s.volatility_signal and s.curve_inverted,
        "Risk-off: volatility is elevated and rising while the yield curve is inverted. "
        "Historically a strong recession indicator; defensive positioning favoured.",
    ),
    RegimeRule(
        Regime.TIGHTENING,
        lambda s: s.rates_rising and s.spread_widening,
        "Tightening: long rates and credit spreads are both rising, pointing to "
        "financial stress and tighter credit conditions.",
    ),
    RegimeRule(
        Regime.RISK_ON,
        lambda s: s.vol_falling and s.curve_normal,
        "Risk-on: volatility is falling and the yield curve is upward sloping. "
        "Markets are pricing low risk and economic growth.",
    ),
    RegimeRule(
        Regime.NEUTRAL,
        lambda s: True,
        "Neutral: mixed or insufficient signals. No clear risk-on or risk-off trend.",
    ),
)

RISK_LABELS: dict[Regime, str] = {
    Regime.RISK_OFF: "RISK OFF",
    Regime.TIGHTENING: "TIGHTENING",
    Regime.RISK_ON: "RISK ON",
    Regime.NEUTRAL: "NEUTRAL",
}

RISK_COLORS: dict[Regime, str] = {
    Regime.RISK_OFF: "#dc2626",
    Regime.TIGHTENING: "#f59e0b",
    Regime.RISK_ON: "#16a34a",
    Regime.NEUTRAL: "#6b7280",
}


def _gt(value: float | None, threshold: float) -> bool:
    return value is not None and value > threshold


def _ge(value: float | None, threshold: float) -> bool:
    return value is not None and value >= threshold


def _lt(value: float | None, threshold: float) -> bool:
    return value is not None and value < threshold


def evaluate_signals(
    features: FeatureVector,
    *,
    vol_id: str = VOLATILITY_ID,
    long_rate_id: str = LONG_RATE_ID,
    credit_spread_id: str = CREDIT_SPREAD_ID,
) -> Signals:
    """Evaluate every sub-signal against the fixed thresholds."""
    vol_level = features.latest.get(vol_id)
    vol_change = features.windowed_change.get(vol_id)
    spread = features.derived_spread

    return Signals(
        volatility_signal=(
            _ge(vol_level, VOL_LEVEL_THRESHOLD) and _ge(vol_change, VOL_CHANGE_THRESHOLD)
        ),
        vol_falling=_lt(vol_change, 0),
        curve_inverted=_lt(spread, 0),
        curve_normal=_gt(spread, 0),
        rates_rising=_gt(features.windowed_change.get(long_rate_id), 0),
        spread_widening=_gt(features.windowed_change.get(credit_spread_id), 0),
    )


def active_conditions(signals: Signals) -> tuple[str, ...]:
    """Text for every true sub-signal, in display order."""
    return tuple(text for name, text in CONDITION_TEXT if getattr(signals, name))


def classify(
    features: FeatureVector,
    *,
    vol_id: str = VOLATILITY_ID,
    long_rate_id: str = LONG_RATE_ID,
    credit_spread_id: str = CREDIT_SPREAD_ID,
    rules: tuple[RegimeRule, ...] = RULES,
) -> RegimeVerdict:
    """
    Classify the macro regime.

    Args:
        features: Feature vector from derive_features
        rules: Ordered rules; the last one must always match

    Returns:
        RegimeVerdict with the first matching label, every active
        sub-signal and the label's explanation
    """
    signals = evaluate_signals(
        features,
        vol_id=vol_id,
        long_rate_id=long_rate_id,
        credit_spread_id=credit_spread_id,
    )
    conditions = active_conditions(signals)

    for rule in rules:
        if rule.predicate(signals):
            return RegimeVerdict(
                label=rule.label,
                active_conditions=conditions,
                explanation=rule.explanation,
            )

    raise ValueError("No regime rule matched; rules must end with a catch-all")


def risk_label(regime: Regime) -> str:
    """Human-readable label for display."""
    return RISK_LABELS[regime]


def risk_color(regime: Regime) -> str:
    """Hex color for display."""
    return RISK_COLORS[regime]
