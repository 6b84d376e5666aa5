"""Run fetch -> features -> classification and build the result handoff."""

import logging
from dataclasses import dataclass, field
from datetime import date

import pandas as pd

from macro_regime_engine.config import (
    CREDIT_SPREAD_ID,
    LONG_RATE_ID,
    LOW_FREQUENCY_IDS,
    MACRO_SERIES,
    PROFILE,
    SHORT_RATE_ID,
    VOLATILITY_ID,
    Settings,
)
from macro_regime_engine.data.fred_fetcher import FredFetcher
from macro_regime_engine.indicators.align import one_year_before
from macro_regime_engine.indicators.features import derive_features
from macro_regime_engine.indicators.regime import classify, risk_color, risk_label
from macro_regime_engine.models import FeatureVector, RegimeVerdict, SeriesSet


logger = logging.getLogger(__name__)


@dataclass
class ClassificationRequest:
    """Series to fetch and where to start; a pre-fetched set skips fetching."""

    series_ids: list[str]
    start_date: date
    series_set: SeriesSet | None = None


@dataclass(frozen=True)
class LatestTableRow:
    series_id: str
    name: str
    unit: str
    latest: float | None
    latest_date: date | None
    change: float | None
    stale: bool = False


@dataclass
class AnalysisResult:
    """Features and verdict handed to persistence and presentation."""

    profile: str
    features: FeatureVector
    verdict: RegimeVerdict
    latest_table: list[LatestTableRow] = field(default_factory=list)

    @property
    def as_of(self) -> date:
        return self.features.as_of

    def to_dict(self) -> dict:
        """JSON-ready representation."""
        return {
            "profile": self.profile,
            "asOf": self.as_of.isoformat(),
            "regime": {
                **self.verdict.to_dict(),
                "riskLabel": risk_label(self.verdict.label),
                "riskColor": risk_color(self.verdict.label),
            },
            "features": self.features.to_dict(),
            "latestTable": [
                {
                    "id": row.series_id,
                    "name": row.name,
                    "unit": row.unit,
                    "latest": row.latest,
                    "latestDate": row.latest_date.isoformat() if row.latest_date else None,
                    "change": row.change,
                    "stale": row.stale,
                }
                for row in self.latest_table
            ],
        }

    def to_frame(self) -> pd.DataFrame:
        """Latest table as a DataFrame indexed by series id."""
        if not self.latest_table:
            return pd.DataFrame(
                columns=["name", "unit", "latest", "latest_date", "change", "stale"]
            )
        return pd.DataFrame(
            [
                {
                    "series_id": row.series_id,
                    "name": row.name,
                    "unit": row.unit,
                    "latest": row.latest,
                    "latest_date": row.latest_date,
                    "change": row.change,
                    "stale": row.stale,
                }
                for row in self.latest_table
            ]
        ).set_index("series_id")


def build_latest_table(
    features: FeatureVector, series_ids: list[str]
) -> list[LatestTableRow]:
    """One display row per requested series, using configured names and units."""
    rows = []
    for series_id in series_ids:
        meta = MACRO_SERIES.get(series_id, {})
        rows.append(
            LatestTableRow(
                series_id=series_id,
                name=meta.get("name", series_id),
                unit=meta.get("unit", ""),
                latest=features.latest.get(series_id),
                latest_date=features.latest_dates.get(series_id),
                change=features.windowed_change.get(series_id),
                stale=features.stale_flags.get(series_id, False),
            )
        )
    return rows


class RegimeAnalyzer:
    """Classifies the current macro regime from FRED series."""

    def __init__(
        self, settings: Settings | None = None, fetcher: FredFetcher | None = None
    ) -> None:
        self.settings = settings or Settings()
        self._fetcher = fetcher

    @property
    def fetcher(self) -> FredFetcher:
        """Lazy-initialize fetcher; only needed when series are not supplied."""
        if self._fetcher is None:
            self._fetcher = FredFetcher(self.settings)
        return self._fetcher

    def close(self) -> None:
        if self._fetcher is not None:
            self._fetcher.close()

    def __enter__(self) -> "RegimeAnalyzer":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def default_request(self, today: date | None = None) -> ClassificationRequest:
        """Request for all configured series over the last ``macro_years`` years."""
        start = today or date.today()
        for _ in range(self.settings.macro_years):
            start = one_year_before(start)
        return ClassificationRequest(
            series_ids=list(self.settings.series_ids), start_date=start
        )

    def analyze(
        self, request: ClassificationRequest, today: date | None = None
    ) -> AnalysisResult:
        """
        Fetch (unless supplied), derive features and classify.

        Raises:
            UpstreamError, UpstreamFormatError, UpstreamTimeout: from fetching
        """
        series_set = request.series_set
        if series_set is None:
            series_set = self.fetcher.fetch_many(request.series_ids, request.start_date)

        features = derive_features(
            series_set,
            day_window=self.settings.day_window,
            stale_threshold_days=self.settings.stale_threshold_days,
            low_frequency_ids=LOW_FREQUENCY_IDS,
            long_rate_id=LONG_RATE_ID,
            short_rate_id=SHORT_RATE_ID,
            today=today,
        )
        verdict = classify(
            features,
            vol_id=VOLATILITY_ID,
            long_rate_id=LONG_RATE_ID,
            credit_spread_id=CREDIT_SPREAD_ID,
        )
        logger.info(f"Regime as of {features.as_of}: {verdict.label.value}")

        series_ids = list(request.series_ids) or list(series_set)
        return AnalysisResult(
            profile=PROFILE,
            features=features,
            verdict=verdict,
            latest_table=build_latest_table(features, series_ids),
        )


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for classifying the current regime."""
    import argparse
    import json
    import sys

    from macro_regime_engine.exceptions import MacroRegimeError
    from macro_regime_engine.indicators.features import format_change, format_value

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Classify the current macro regime")
    parser.add_argument(
        "--series",
        type=str,
        nargs="+",
        help="FRED series to fetch (default: configured series)",
    )
    parser.add_argument(
        "--start",
        type=date.fromisoformat,
        help="Observation start date, YYYY-MM-DD (default: MACRO_YEARS back)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the result as JSON",
    )
    parser.add_argument(
        "--status",
        action="store_true",
        help="Also show cache status for the fetched series",
    )
    args = parser.parse_args(argv)

    try:
        with RegimeAnalyzer() as analyzer:
            request = analyzer.default_request()
            if args.series:
                request.series_ids = args.series
            if args.start:
                request.start_date = args.start
            result = analyzer.analyze(request)
            status = analyzer.fetcher.get_status() if args.status else None
    except MacroRegimeError as e:
        print(f"Error: {e}")
        sys.exit(1)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
        return

    verdict = result.verdict
    print(f"\nMacro Regime - As of {result.as_of}")
    print("=" * 70)
    print(f"\nREGIME: {risk_label(verdict.label)}")
    print(f"{verdict.explanation}")
    if verdict.active_conditions:
        print("\nActive conditions:")
        for condition in verdict.active_conditions:
            print(f"  - {condition}")
    print(f"\nCurve slope (10Y-2Y): {format_value(result.features.derived_spread)}")
    print("\n" + "-" * 70)
    for row in result.latest_table:
        last = row.latest_date.isoformat() if row.latest_date else "N/A"
        stale = " (stale)" if row.stale else ""
        print(
            f"  {row.series_id:14} | {format_value(row.latest):>10} | "
            f"{format_change(row.change):>8} | {last:10} | {row.name}{stale}"
        )

    if status is not None:
        print("\nCache Status:")
        print("-" * 70)
        for series_id, info in sorted(status.items()):
            count = info["observation_count"]
            valid = info["valid_count"]
            last = info["last_date"] or "N/A"
            print(f"{series_id:20} | {count:6} obs | {valid:6} valid | Last: {last:10}")


if __name__ == "__main__":
    main()
