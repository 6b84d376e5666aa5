"""Configuration settings for the regime engine."""

from dataclasses import dataclass, field
import os

from dotenv import load_dotenv

from macro_regime_engine.exceptions import ConfigurationError


load_dotenv()


# FRED series used by the regime classifier: id -> display metadata
MACRO_SERIES: dict[str, dict[str, str]] = {
    "DGS10": {"name": "US 10Y Treasury", "unit": "%"},
    "DGS2": {"name": "US 2Y Treasury", "unit": "%"},
    "CPIAUCSL": {"name": "US CPI (SA)", "unit": "index"},
    "BAMLH0A0HYM2": {"name": "US High Yield Spread", "unit": "%"},
    "VIXCLS": {"name": "VIX", "unit": "index"},
}

# Series roles
LONG_RATE_ID = "DGS10"
SHORT_RATE_ID = "DGS2"
VOLATILITY_ID = "VIXCLS"
CREDIT_SPREAD_ID = "BAMLH0A0HYM2"
# Monthly series: compared year-over-year instead of over a day window
LOW_FREQUENCY_IDS: tuple[str, ...] = ("CPIAUCSL",)

PROFILE = "MVP"


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from None


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None


@dataclass
class Settings:
    """Application settings."""

    fred_api_key: str = field(default_factory=lambda: os.getenv("FRED_API_KEY", ""))
    fred_base_url: str = field(
        default_factory=lambda: os.getenv("FRED_BASE_URL", "https://api.stlouisfed.org/fred")
    )
    request_timeout: float = field(
        default_factory=lambda: _env_float("FRED_TIMEOUT_SECONDS", 15.0)
    )
    min_request_interval: float = field(
        default_factory=lambda: _env_float("FRED_MIN_REQUEST_INTERVAL", 0.5)
    )
    cache_ttl_hours: float = field(
        default_factory=lambda: _env_float("FRED_CACHE_TTL_HOURS", 24.0)
    )
    day_window: int = field(default_factory=lambda: _env_int("MACRO_DAY_WINDOW", 20))
    stale_threshold_days: int = field(
        default_factory=lambda: _env_int("MACRO_STALE_THRESHOLD_DAYS", 45)
    )
    macro_years: int = field(default_factory=lambda: _env_int("MACRO_YEARS", 5))
    series_ids: list[str] = field(default_factory=lambda: list(MACRO_SERIES))

    def validate(self) -> None:
        """Validate required settings."""
        if not self.fred_api_key:
            raise ConfigurationError(
                "FRED_API_KEY not set. Get one at: "
                "https://fred.stlouisfed.org/docs/api/api_key.html"
            )
        if self.request_timeout <= 0:
            raise ConfigurationError("request_timeout must be positive")
        if self.min_request_interval < 0:
            raise ConfigurationError("min_request_interval cannot be negative")
        if self.cache_ttl_hours < 0:
            raise ConfigurationError("cache_ttl_hours cannot be negative")
        if self.day_window < 1:
            raise ConfigurationError("day_window must be at least 1")
        if self.stale_threshold_days < 0:
            raise ConfigurationError("stale_threshold_days cannot be negative")
        if not self.series_ids:
            raise ConfigurationError("series_ids cannot be empty")

    @property
    def observations_url(self) -> str:
        return f"{self.fred_base_url.rstrip('/')}/series/observations"
