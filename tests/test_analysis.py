"""Tests for the analysis handoff."""

from __future__ import annotations

from datetime import date

import httpx
import pytest

import macro_regime_engine.analysis as analysis_module
from macro_regime_engine.analysis import (
    AnalysisResult,
    ClassificationRequest,
    RegimeAnalyzer,
    build_latest_table,
    main,
)
from macro_regime_engine.config import Settings
from macro_regime_engine.data.fred_fetcher import FredFetcher
from macro_regime_engine.exceptions import UpstreamTimeout
from macro_regime_engine.indicators.features import derive_features
from macro_regime_engine.models import Regime


class TestAnalyze:
    def test_prefetched_set_skips_fetching(self, macro_series_set) -> None:
        # No API key: building a fetcher would fail validation
        analyzer = RegimeAnalyzer(Settings(fred_api_key=""))
        request = ClassificationRequest(
            series_ids=list(macro_series_set),
            start_date=date(2019, 1, 1),
            series_set=macro_series_set,
        )
        result = analyzer.analyze(request)

        assert result.verdict.label == Regime.TIGHTENING
        assert result.as_of == date(2024, 2, 1)
        assert result.profile == "MVP"

    def test_fetches_when_no_set_given(self, settings: Settings) -> None:
        def reply(request: httpx.Request) -> httpx.Response:
            series_id = request.url.params["series_id"]
            spread = {"DGS10": "4.5", "DGS2": "4.0"}.get(series_id, "10")
            return httpx.Response(
                200,
                json={
                    "observations": [
                        {"date": "2024-01-02", "value": "20"},
                        {"date": "2024-01-03", "value": spread},
                    ]
                },
            )

        client = httpx.Client(transport=httpx.MockTransport(reply))
        fetcher = FredFetcher(settings, client=client)
        settings.day_window = 1
        with RegimeAnalyzer(settings, fetcher=fetcher) as analyzer:
            result = analyzer.analyze(
                ClassificationRequest(series_ids=["DGS10", "DGS2", "VIXCLS"], start_date=date(2023, 1, 1))
            )

        # VIX falls 20 -> 10 and the curve is upward sloping
        assert result.features.derived_spread == pytest.approx(0.5)
        assert result.features.windowed_change["VIXCLS"] == pytest.approx(-10.0)
        assert result.verdict.label == Regime.RISK_ON

    def test_fetch_errors_propagate(self, settings: Settings) -> None:
        def reply(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("slow", request=request)

        fetcher = FredFetcher(settings, client=httpx.Client(transport=httpx.MockTransport(reply)))
        analyzer = RegimeAnalyzer(settings, fetcher=fetcher)
        with pytest.raises(UpstreamTimeout):
            analyzer.analyze(ClassificationRequest(series_ids=["DGS10"], start_date=date(2023, 1, 1)))

    def test_default_request(self, settings: Settings) -> None:
        request = RegimeAnalyzer(settings).default_request(today=date(2024, 6, 15))
        assert request.start_date == date(2019, 6, 15)
        assert request.series_ids == ["DGS10", "DGS2", "CPIAUCSL", "BAMLH0A0HYM2", "VIXCLS"]
        assert request.series_set is None


class TestAnalysisResult:
    @pytest.fixture()
    def result(self, macro_series_set) -> AnalysisResult:
        analyzer = RegimeAnalyzer(Settings(fred_api_key=""))
        return analyzer.analyze(
            ClassificationRequest(
                series_ids=["DGS10", "DGS2", "CPIAUCSL", "BAMLH0A0HYM2", "VIXCLS"],
                start_date=date(2019, 1, 1),
                series_set=macro_series_set,
            )
        )

    def test_latest_table(self, result: AnalysisResult) -> None:
        rows = {row.series_id: row for row in result.latest_table}
        assert list(rows) == ["DGS10", "DGS2", "CPIAUCSL", "BAMLH0A0HYM2", "VIXCLS"]
        assert rows["DGS10"].name == "US 10Y Treasury"
        assert rows["DGS10"].unit == "%"
        assert rows["DGS10"].latest == pytest.approx(4.29)
        assert rows["CPIAUCSL"].latest_date == date(2024, 2, 1)
        assert rows["CPIAUCSL"].stale is False

    def test_unknown_series_uses_id_as_name(self, macro_series_set) -> None:
        features = derive_features(macro_series_set)
        (row,) = build_latest_table(features, ["T10Y3M"])
        assert row.name == "T10Y3M"
        assert row.latest is None

    def test_to_dict(self, result: AnalysisResult) -> None:
        data = result.to_dict()
        assert data["asOf"] == "2024-02-01"
        assert data["regime"]["label"] == "TIGHTENING"
        assert data["regime"]["riskLabel"] == "TIGHTENING"
        assert data["regime"]["riskColor"] == "#f59e0b"
        assert data["features"]["derivedSpread"] == pytest.approx(-0.21)
        assert data["features"]["latestDates"]["DGS10"] == "2024-02-09"
        assert data["features"]["staleFlags"] == {"CPIAUCSL": False}
        assert data["latestTable"][0]["id"] == "DGS10"
        assert data["latestTable"][0]["latestDate"] == "2024-02-09"

    def test_to_frame(self, result: AnalysisResult) -> None:
        frame = result.to_frame()
        assert list(frame.index) == ["DGS10", "DGS2", "CPIAUCSL", "BAMLH0A0HYM2", "VIXCLS"]
        assert frame.loc["DGS2", "latest"] == pytest.approx(4.5)


class TestMain:
    @pytest.fixture
    def offline_cli(self, monkeypatch):
        def reply(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={
                    "observations": [
                        {"date": "2024-01-02", "value": "4.0"},
                        {"date": "2024-01-03", "value": "."},
                    ]
                },
            )

        monkeypatch.setenv("FRED_API_KEY", "test-key")
        monkeypatch.setenv("FRED_MIN_REQUEST_INTERVAL", "0")
        monkeypatch.setattr(
            analysis_module,
            "FredFetcher",
            lambda settings: FredFetcher(
                settings, client=httpx.Client(transport=httpx.MockTransport(reply))
            ),
        )

    def test_status_flag_prints_cache_status(self, offline_cli, capsys) -> None:
        main(["--series", "DGS10", "VIXCLS", "--status"])
        out = capsys.readouterr().out
        assert "Cache Status:" in out
        status_lines = out.split("Cache Status:")[1]
        assert "DGS10" in status_lines
        assert "     2 obs |      1 valid | Last: 2024-01-03" in status_lines

    def test_no_status_by_default(self, offline_cli, capsys) -> None:
        main(["--series", "DGS10", "VIXCLS"])
        out = capsys.readouterr().out
        assert "REGIME:" in out
        assert "Cache Status:" not in out
