"""Banco Central SGS API fetchers (sync and async)."""

import logging
from datetime import date

import httpx
import pandas as pd

from bcb_rates.config import Settings
from bcb_rates.data.dates import format_sgs_date
from bcb_rates.errors import (
    EmptySeriesError,
    HTTPStatusError,
    InvalidObservationError,
    TransportError,
)
from bcb_rates.models import RateObservation


logger = logging.getLogger(__name__)


def _series_url(base_url: str, code: int) -> str:
    return f"{base_url}/bcdata.sgs.{code}/dados"


def _range_params(start_date: date, end_date: date) -> dict:
    return {
        "formato": "json",
        "dataInicial": format_sgs_date(start_date),
        "dataFinal": format_sgs_date(end_date),
    }


def parse_observations(payload: object) -> pd.DataFrame:
    """
    Convert an SGS JSON payload into a DataFrame.

    Args:
        payload: decoded JSON, a list of {"data": "dd/mm/yyyy", "valor": "1.23"}

    Returns:
        DataFrame with a `date` DatetimeIndex and a float `value` column,
        in the order the source returned them

    Raises:
        InvalidObservationError: payload is not a list of records, or a
            date/value does not parse
    """
    if not isinstance(payload, list):
        raise InvalidObservationError(
            f"Unexpected SGS payload: {str(payload)[:100]}"
        )
    if not payload:
        return pd.DataFrame(columns=["value"], index=pd.DatetimeIndex([], name="date"))

    try:
        df = pd.DataFrame(payload)[["data", "valor"]].copy()
    except (KeyError, ValueError) as e:
        raise InvalidObservationError(f"Malformed SGS records: {e}") from e

    values = df["valor"].astype(str).str.strip().str.replace(",", ".", regex=False)
    df["value"] = pd.to_numeric(values, errors="coerce")
    df["date"] = pd.to_datetime(df["data"], format="%d/%m/%Y", errors="coerce")

    bad = df[df["value"].isna() | df["date"].isna()]
    if not bad.empty:
        first = bad.iloc[0]
        raise InvalidObservationError(
            f"Non-numeric observation: data={first['data']!r} valor={first['valor']!r}"
        )

    return df[["date", "value"]].set_index("date")


def to_observations(df: pd.DataFrame) -> list[RateObservation]:
    """Convert a parsed DataFrame into RateObservation records."""
    return [
        RateObservation(date=idx.date(), value=float(val))
        for idx, val in df["value"].items()
    ]


def _decode(response: httpx.Response, url: str) -> pd.DataFrame:
    try:
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise HTTPStatusError(e.response.status_code, url) from e

    try:
        payload = response.json()
    except ValueError as e:
        raise InvalidObservationError(f"Response from {url} is not JSON") from e

    df = parse_observations(payload)
    if df.empty:
        raise EmptySeriesError(f"No observations returned by {url}")
    return df


class SgsFetcher:
    """Fetches SGS series over a blocking HTTP client."""

    def __init__(
        self, settings: Settings | None = None, client: httpx.Client | None = None
    ) -> None:
        self.settings = settings or Settings()
        self.settings.validate()
        self._client = client

    @property
    def client(self) -> httpx.Client:
        """Lazy-initialize HTTP client."""
        if self._client is None:
            self._client = httpx.Client(
                timeout=self.settings.http_timeout, follow_redirects=True
            )
        return self._client

    def close(self) -> None:
        """Close HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> "SgsFetcher":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def _get(self, url: str, params: dict) -> pd.DataFrame:
        logger.debug(f"GET {url} {params}")
        try:
            response = self.client.get(url, params=params)
        except httpx.RequestError as e:
            raise TransportError(f"Could not reach {url}: {e}") from e
        return _decode(response, url)

    def fetch_range(self, code: int, start_date: date, end_date: date) -> pd.DataFrame:
        """
        Fetch observations between two dates, both inclusive.

        Raises:
            RateDataError subclass when no usable series is returned
        """
        logger.info(f"Fetching SGS {code} from {start_date} to {end_date}...")
        df = self._get(
            _series_url(self.settings.base_url, code),
            _range_params(start_date, end_date),
        )
        logger.info(f"  Got {len(df)} observations")
        return df

    def fetch_latest(self, code: int, count: int | None = None) -> pd.DataFrame:
        """Fetch the most recent `count` observations (default: settings.latest_window)."""
        if count is None:
            count = self.settings.latest_window
        if count <= 0:
            raise ValueError(f"count must be positive, got {count}")
        logger.info(f"Fetching last {count} observations of SGS {code}...")
        return self._get(
            f"{_series_url(self.settings.base_url, code)}/ultimos/{count}",
            {"formato": "json"},
        )


class AsyncSgsFetcher:
    """Fetches SGS series over an asyncio HTTP client."""

    def __init__(
        self,
        settings: Settings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.settings.validate()
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-initialize HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.settings.http_timeout, follow_redirects=True
            )
        return self._client

    async def aclose(self) -> None:
        """Close HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "AsyncSgsFetcher":
        return self

    async def __aexit__(self, *args) -> None:
        await self.aclose()

    async def _get(self, url: str, params: dict) -> pd.DataFrame:
        logger.debug(f"GET {url} {params}")
        try:
            response = await self.client.get(url, params=params)
        except httpx.RequestError as e:
            raise TransportError(f"Could not reach {url}: {e}") from e
        return _decode(response, url)

    async def fetch_range(
        self, code: int, start_date: date, end_date: date
    ) -> pd.DataFrame:
        """Async counterpart of SgsFetcher.fetch_range."""
        logger.info(f"Fetching SGS {code} from {start_date} to {end_date}...")
        df = await self._get(
            _series_url(self.settings.base_url, code),
            _range_params(start_date, end_date),
        )
        logger.info(f"  Got {len(df)} observations")
        return df

    async def fetch_latest(self, code: int, count: int | None = None) -> pd.DataFrame:
        """Async counterpart of SgsFetcher.fetch_latest."""
        if count is None:
            count = self.settings.latest_window
        if count <= 0:
            raise ValueError(f"count must be positive, got {count}")
        logger.info(f"Fetching last {count} observations of SGS {code}...")
        return await self._get(
            f"{_series_url(self.settings.base_url, code)}/ultimos/{count}",
            {"formato": "json"},
        )
