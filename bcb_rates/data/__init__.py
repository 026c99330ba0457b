"""Data fetching."""

from .sgs_fetcher import SgsFetcher, AsyncSgsFetcher, parse_observations
from .dates import lookback_window, format_sgs_date, parse_lookback_months

__all__ = [
    "SgsFetcher",
    "AsyncSgsFetcher",
    "parse_observations",
    "lookback_window",
    "format_sgs_date",
    "parse_lookback_months",
]
