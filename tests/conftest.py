"""Shared fixtures: settings pointed at a fake host and SGS payload builders."""

from datetime import date, timedelta

import httpx
import pytest

from bcb_rates.config import Settings


BASE_URL = "https://sgs.test/dados/serie"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        base_url=BASE_URL,
        http_timeout=5.0,
        latest_window=20,
        cdi_spread=0.1,
        default_strategy="compounding",
    )


@pytest.fixture
def sgs_payload():
    """Build an SGS-shaped JSON list from values, one day apart."""

    def build(values, start: date = date(2025, 1, 2)) -> list[dict]:
        return [
            {
                "data": (start + timedelta(days=i)).strftime("%d/%m/%Y"),
                "valor": str(v),
            }
            for i, v in enumerate(values)
        ]

    return build


@pytest.fixture
def recorder():
    """MockTransport handler that records requests and answers from a route map."""

    class Recorder:
        def __init__(self) -> None:
            self.requests: list[httpx.Request] = []
            self.routes: dict[int, tuple[int, object]] = {}

        def route(self, code: int, payload: object, status: int = 200) -> None:
            self.routes[code] = (status, payload)

        def __call__(self, request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            for code, (status, payload) in self.routes.items():
                if f"/bcdata.sgs.{code}/" in request.url.path:
                    if isinstance(payload, str):
                        return httpx.Response(status, text=payload)
                    return httpx.Response(status, json=payload)
            return httpx.Response(200, json=[])

        def client(self) -> httpx.Client:
            return httpx.Client(transport=httpx.MockTransport(self))

        def async_client(self) -> httpx.AsyncClient:
            return httpx.AsyncClient(transport=httpx.MockTransport(self))

    return Recorder()
