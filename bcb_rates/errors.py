"""Errors raised while obtaining a rate."""


class RateDataError(Exception):
    """No rate value could be obtained from the data source."""


class TransportError(RateDataError):
    """Network or transport failure talking to the SGS API."""


class HTTPStatusError(RateDataError):
    """The SGS API answered with a non-success status."""

    def __init__(self, status_code: int, url: str) -> None:
        super().__init__(f"HTTP {status_code} from {url}")
        self.status_code = status_code
        self.url = url


class EmptySeriesError(RateDataError):
    """The requested window holds zero observations."""


class InvalidObservationError(RateDataError):
    """An observation value could not be parsed as a number."""


class ValidationError(ValueError):
    """The caller supplied an invalid look-back period."""
