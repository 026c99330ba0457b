import asyncio
from datetime import date

import httpx
import pytest

from bcb_rates.data.sgs_fetcher import (
    AsyncSgsFetcher,
    SgsFetcher,
    parse_observations,
    to_observations,
)
from bcb_rates.errors import (
    EmptySeriesError,
    HTTPStatusError,
    InvalidObservationError,
    RateDataError,
    TransportError,
)
from bcb_rates.models import RateObservation


def test_parse_observations_builds_dated_frame(sgs_payload):
    df = parse_observations(sgs_payload([0.04, 0.05], start=date(2025, 1, 2)))

    assert list(df["value"]) == [0.04, 0.05]
    assert df.index[0].date() == date(2025, 1, 2)
    assert df.index.name == "date"


def test_parse_observations_accepts_decimal_comma():
    df = parse_observations([{"data": "01/01/2025", "valor": "0,52"}])
    assert df["value"].iloc[0] == pytest.approx(0.52)


def test_parse_observations_rejects_non_numeric():
    with pytest.raises(InvalidObservationError, match="Non-numeric"):
        parse_observations([{"data": "01/01/2025", "valor": "n/d"}])


@pytest.mark.parametrize("payload", [{"erro": "x"}, [{"foo": 1}], "texto"])
def test_parse_observations_rejects_unexpected_shapes(payload):
    with pytest.raises(InvalidObservationError):
        parse_observations(payload)


def test_to_observations(sgs_payload):
    df = parse_observations(sgs_payload([0.5], start=date(2025, 2, 1)))
    assert to_observations(df) == [RateObservation(date(2025, 2, 1), 0.5)]


def test_fetch_range_sends_sgs_query(settings, recorder, sgs_payload):
    recorder.route(12, sgs_payload([0.04] * 3))
    with SgsFetcher(settings, client=recorder.client()) as fetcher:
        df = fetcher.fetch_range(12, date(2024, 8, 15), date(2026, 2, 15))

    assert len(df) == 3
    request = recorder.requests[0]
    assert request.url.path == "/dados/serie/bcdata.sgs.12/dados"
    assert request.url.params["formato"] == "json"
    assert request.url.params["dataInicial"] == "15/08/2024"
    assert request.url.params["dataFinal"] == "15/02/2026"


def test_fetch_latest_uses_window_from_settings(settings, recorder, sgs_payload):
    recorder.route(432, sgs_payload([15.0]))
    with SgsFetcher(settings, client=recorder.client()) as fetcher:
        df = fetcher.fetch_latest(432)

    assert df["value"].iloc[-1] == 15.0
    assert recorder.requests[0].url.path == "/dados/serie/bcdata.sgs.432/dados/ultimos/20"


def test_empty_series_raises(settings, recorder):
    recorder.route(12, [])
    with SgsFetcher(settings, client=recorder.client()) as fetcher:
        with pytest.raises(EmptySeriesError):
            fetcher.fetch_range(12, date(2025, 1, 1), date(2025, 2, 1))


def test_http_error_status(settings, recorder):
    recorder.route(12, {"error": "boom"}, status=503)
    with SgsFetcher(settings, client=recorder.client()) as fetcher:
        with pytest.raises(HTTPStatusError) as exc_info:
            fetcher.fetch_range(12, date(2025, 1, 1), date(2025, 2, 1))

    assert exc_info.value.status_code == 503
    assert isinstance(exc_info.value, RateDataError)


def test_non_json_body(settings, recorder):
    recorder.route(12, "<html>manutenção</html>")
    with SgsFetcher(settings, client=recorder.client()) as fetcher:
        with pytest.raises(InvalidObservationError):
            fetcher.fetch_range(12, date(2025, 1, 1), date(2025, 2, 1))


def test_transport_failure(settings):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = httpx.Client(transport=httpx.MockTransport(handler))
    with SgsFetcher(settings, client=client) as fetcher:
        with pytest.raises(TransportError):
            fetcher.fetch_latest(12)


def test_close_resets_client(settings):
    fetcher = SgsFetcher(settings)
    first = fetcher.client
    fetcher.close()
    assert fetcher._client is None
    assert fetcher.client is not first
    fetcher.close()


def test_invalid_settings_rejected(settings):
    settings.latest_window = 0
    with pytest.raises(ValueError):
        SgsFetcher(settings)


def test_async_fetch_range(settings, recorder, sgs_payload):
    recorder.route(433, sgs_payload([0.4, 0.5]))

    async def run():
        async with AsyncSgsFetcher(settings, client=recorder.async_client()) as fetcher:
            return await fetcher.fetch_range(433, date(2025, 1, 1), date(2025, 3, 1))

    df = asyncio.run(run())
    assert list(df["value"]) == [0.4, 0.5]
    assert recorder.requests[0].url.params["dataInicial"] == "01/01/2025"


def test_async_transport_failure(settings):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    async def run():
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        async with AsyncSgsFetcher(settings, client=client) as fetcher:
            await fetcher.fetch_latest(12)

    with pytest.raises(TransportError):
        asyncio.run(run())


def redirect_loop(request: httpx.Request) -> httpx.Response:
    return httpx.Response(302, headers={"Location": str(request.url)})


def test_redirect_loop_is_a_transport_failure(settings):
    client = httpx.Client(
        transport=httpx.MockTransport(redirect_loop), follow_redirects=True
    )
    with SgsFetcher(settings, client=client) as fetcher:
        with pytest.raises(TransportError):
            fetcher.fetch_latest(12)


def test_async_redirect_loop_is_a_transport_failure(settings):
    async def run():
        client = httpx.AsyncClient(
            transport=httpx.MockTransport(redirect_loop), follow_redirects=True
        )
        async with AsyncSgsFetcher(settings, client=client) as fetcher:
            await fetcher.fetch_range(12, date(2025, 1, 1), date(2025, 2, 1))

    with pytest.raises(TransportError):
        asyncio.run(run())


def test_fetch_latest_explicit_count(settings, recorder, sgs_payload):
    recorder.route(432, sgs_payload([15.0]))
    with SgsFetcher(settings, client=recorder.client()) as fetcher:
        fetcher.fetch_latest(432, count=5)

    assert recorder.requests[0].url.path.endswith("/bcdata.sgs.432/dados/ultimos/5")


@pytest.mark.parametrize("count", [0, -1])
def test_fetch_latest_rejects_non_positive_count(settings, recorder, count):
    with SgsFetcher(settings, client=recorder.client()) as fetcher:
        with pytest.raises(ValueError, match="count must be positive"):
            fetcher.fetch_latest(432, count=count)

    assert recorder.requests == []
