"""FRED API series fetcher with rate limiting and a shared TTL cache."""

import json
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import Callable

import httpx
import numpy as np
import pandas as pd

from macro_regime_engine.config import Settings
from macro_regime_engine.data.cache import SeriesCache
from macro_regime_engine.data.rate_limit import RateLimiter
from macro_regime_engine.exceptions import (
    SeriesFetchError,
    UpstreamError,
    UpstreamFormatError,
    UpstreamTimeout,
)
from macro_regime_engine.models import Observation, Series, SeriesSet


logger = logging.getLogger(__name__)

# FRED marks missing observations with "."
NO_DATA_SENTINEL = "."
MAX_WORKERS = 8


def _clean_value(raw: object) -> str | float | None:
    """Strip strings and drop the no-data sentinel before numeric coercion."""
    if isinstance(raw, str):
        raw = raw.strip()
        return None if raw in ("", NO_DATA_SENTINEL) else raw
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        return None
    try:
        return float(raw)
    except OverflowError:
        return None


def parse_observations(series_id: str, raw: list, start_date: date | None = None) -> Series:
    """
    Normalize raw FRED observations into a Series.

    Missing, empty, non-numeric and non-finite values become None.
    Observations are returned ascending by date whatever the upstream order.

    Raises:
        UpstreamFormatError: if an entry is not an object or has no parseable date
    """
    if not raw:
        return Series(series_id=series_id)

    if not all(isinstance(item, dict) for item in raw):
        raise UpstreamFormatError("observation entries must be objects", series_id, start_date)

    df = pd.DataFrame(raw)
    if "date" not in df.columns:
        raise UpstreamFormatError("observations missing 'date' field", series_id, start_date)
    if "value" not in df.columns:
        df["value"] = None

    dates = pd.to_datetime(df["date"], format="%Y-%m-%d", errors="coerce")
    if dates.isna().any():
        bad = df.loc[dates.isna(), "date"].iloc[0]
        raise UpstreamFormatError(f"unparseable observation date {bad!r}", series_id, start_date)

    values = pd.to_numeric(df["value"].map(_clean_value), errors="coerce").astype(float)
    values = values.replace([np.inf, -np.inf], np.nan)

    frame = pd.DataFrame({"date": dates, "value": values}).sort_values("date", kind="stable")

    observations = tuple(
        Observation(
            date=ts.date(),
            value=None if pd.isna(val) else float(val),
        )
        for ts, val in zip(frame["date"], frame["value"])
    )
    return Series(series_id=series_id, observations=observations)


class FredFetcher:
    """Fetches observation series from the FRED API with caching."""

    def __init__(
        self,
        settings: Settings | None = None,
        cache: SeriesCache | None = None,
        rate_limiter: RateLimiter | None = None,
        client: httpx.Client | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings or Settings()
        self.settings.validate()
        # SeriesCache defines __len__, so an empty shared cache is falsy
        if cache is None:
            cache = SeriesCache(ttl_seconds=self.settings.cache_ttl_hours * 3600)
        self.cache = cache
        if rate_limiter is None:
            rate_limiter = RateLimiter(min_interval=self.settings.min_request_interval)
        self.rate_limiter = rate_limiter
        self._clock = clock
        self._client = client
        self._owns_client = client is None
        self._client_lock = threading.Lock()

    @property
    def client(self) -> httpx.Client:
        """Lazy-initialize HTTP client."""
        with self._client_lock:
            if self._client is None:
                self._client = httpx.Client(
                    timeout=self.settings.request_timeout,
                    headers={"Accept": "application/json"},
                )
                self._owns_client = True
            return self._client

    def close(self) -> None:
        """Close HTTP client if this fetcher created it."""
        with self._client_lock:
            if self._client is not None and self._owns_client:
                self._client.close()
                self._client = None

    def __enter__(self) -> "FredFetcher":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def _request(self, series_id: str, start_date: date) -> dict:
        """Dispatch one rate-limited observations request and return the JSON body."""
        params = {
            "series_id": series_id,
            "api_key": self.settings.fred_api_key,
            "file_type": "json",
            "observation_start": start_date.isoformat(),
            "sort_order": "asc",
        }

        timeout = self.settings.request_timeout
        self.rate_limiter.acquire()
        # httpx timeouts are per phase; the deadline bounds the whole request
        deadline = self._clock() + timeout
        body = bytearray()
        try:
            with self.client.stream(
                "GET", self.settings.observations_url, params=params, timeout=timeout
            ) as response:
                for chunk in response.iter_bytes():
                    body.extend(chunk)
                    if self._clock() > deadline:
                        raise UpstreamTimeout(
                            f"response not complete within {timeout}s", series_id, start_date
                        )
        except httpx.TimeoutException as e:
            raise UpstreamTimeout(f"no response within {timeout}s", series_id, start_date) from e
        except httpx.DecodingError as e:
            raise UpstreamFormatError(
                f"response body could not be decoded: {e}", series_id, start_date
            ) from e
        except httpx.RequestError as e:
            raise UpstreamError(f"request failed: {e}", series_id, start_date) from e

        if not response.is_success:
            detail = _error_message(response, bytes(body))
            raise UpstreamError(
                f"HTTP {response.status_code}{': ' + detail if detail else ''}",
                series_id,
                start_date,
                status_code=response.status_code,
            )

        try:
            data = json.loads(bytes(body))
        except ValueError as e:
            raise UpstreamFormatError("response body is not JSON", series_id, start_date) from e

        if not isinstance(data, dict):
            raise UpstreamFormatError("response body is not an object", series_id, start_date)

        if data.get("error_code") or data.get("error_message"):
            raise UpstreamError(
                data.get("error_message") or "unknown provider error",
                series_id,
                start_date,
                status_code=response.status_code,
            )

        return data

    def fetch_series(self, series_id: str, start_date: date) -> Series:
        """
        Fetch a single series, serving from cache when a fresh entry exists.

        Args:
            series_id: FRED series ID
            start_date: First observation date requested

        Returns:
            Series ascending by date

        Raises:
            UpstreamError, UpstreamFormatError, UpstreamTimeout
        """
        cached = self.cache.get(series_id)
        if cached is not None:
            logger.info(f"Cache hit for {series_id}")
            return cached

        logger.info(f"Fetching {series_id} from {start_date.isoformat()}...")
        try:
            data = self._request(series_id, start_date)
            raw = data.get("observations")
            if not isinstance(raw, list):
                raise UpstreamFormatError(
                    "response missing 'observations' list", series_id, start_date
                )
            series = parse_observations(series_id, raw, start_date)
        except SeriesFetchError as e:
            logger.error(f"Error fetching {series_id}: {e}")
            raise

        self.cache.put(series)
        logger.info(f"  Stored {len(series)} observations ({series.valid_count()} valid)")
        return series

    def fetch_many(self, series_ids: list[str], start_date: date) -> SeriesSet:
        """
        Fetch several series concurrently.

        Dispatch still goes through the shared rate limiter. The first
        failure propagates unchanged.
        """
        unique_ids = list(dict.fromkeys(series_ids))
        if not unique_ids:
            return {}

        workers = min(MAX_WORKERS, len(unique_ids))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {
                series_id: executor.submit(self.fetch_series, series_id, start_date)
                for series_id in unique_ids
            }
            return {series_id: future.result() for series_id, future in futures.items()}

    def get_status(self) -> dict[str, dict]:
        """Get cache status for all configured series."""
        status = self.cache.get_cache_status()
        for series_id in self.settings.series_ids:
            status.setdefault(
                series_id,
                {
                    "observation_count": 0,
                    "valid_count": 0,
                    "first_date": None,
                    "last_date": None,
                    "age_seconds": None,
                    "expired": None,
                },
            )
        return status


def _error_message(response: httpx.Response, content: bytes) -> str:
    """Best-effort error detail from a failed FRED response."""
    try:
        body = json.loads(content)
    except ValueError:
        return response.reason_phrase or ""
    if isinstance(body, dict):
        return str(body.get("error_message") or response.reason_phrase or "")
    return response.reason_phrase or ""
