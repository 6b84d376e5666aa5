"""Exception hierarchy for the regime engine."""

from datetime import date


class MacroRegimeError(Exception):
    """Base exception for all regime engine errors."""


class ConfigurationError(MacroRegimeError, ValueError):
    """Missing credential or invalid settings."""


class SeriesFetchError(MacroRegimeError):
    """A series could not be fetched from the upstream provider."""

    def __init__(self, message: str, series_id: str, start_date: date | None = None) -> None:
        self.series_id = series_id
        self.start_date = start_date
        since = f" since {start_date.isoformat()}" if start_date else ""
        super().__init__(f"{series_id}{since}: {message}")


class UpstreamError(SeriesFetchError):
    """Non-success HTTP status or a provider-reported error."""

    def __init__(
        self,
        message: str,
        series_id: str,
        start_date: date | None = None,
        status_code: int | None = None,
    ) -> None:
        self.status_code = status_code
        super().__init__(message, series_id, start_date)


class UpstreamFormatError(SeriesFetchError):
    """Response body missing the expected fields or structurally invalid."""


class UpstreamTimeout(SeriesFetchError):
    """Upstream did not respond within the request deadline."""
