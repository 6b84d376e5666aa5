"""Data fetching and caching."""

from .fred_fetcher import FredFetcher, parse_observations
from .cache import SeriesCache
from .rate_limit import RateLimiter

__all__ = ["FredFetcher", "SeriesCache", "RateLimiter", "parse_observations"]
