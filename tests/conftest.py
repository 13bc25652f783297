"""Shared fixtures: an httpx mock transport that records requests."""

import json
from typing import Any, Callable, Optional

import httpx
import pytest

from bybit_sdk import Credentials, NoopLogger, RestClient


def envelope(result: Any = None, ret_code: int = 0, ret_msg: str = "OK") -> str:
    """Serialize a Bybit response envelope."""
    return json.dumps(
        {
            "retCode": ret_code,
            "retMsg": ret_msg,
            "result": {} if result is None else result,
            "retExtInfo": {},
            "time": 1672211918471,
        }
    )


class Exchange:
    """Fake exchange: records every request and replies with canned bodies."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.routes: dict[str, Callable[[httpx.Request], httpx.Response]] = {}
        self.default = httpx.Response(200, text=envelope())

    def reply(self, path: str, result: Any = None, **kwargs: Any) -> None:
        """Answer ``path`` with a success (or error) envelope."""
        text = envelope(result, **kwargs)
        self.routes[path] = lambda request: httpx.Response(200, text=text)

    def reply_raw(self, path: str, text: str, status_code: int = 200) -> None:
        self.routes[path] = lambda request: httpx.Response(status_code, text=text)

    def fail(self, path: str, error: type[httpx.HTTPError], message: str = "boom") -> None:
        def raise_error(request: httpx.Request) -> httpx.Response:
            raise error(message, request=request)

        self.routes[path] = raise_error

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(request.url.path)
        return route(request) if route else self.default

    @property
    def last(self) -> httpx.Request:
        assert self.requests, "no request was sent"
        return self.requests[-1]

    def http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def exchange():
    """Fake exchange with no routes configured."""
    return Exchange()


@pytest.fixture
def make_rest(exchange) -> Callable[..., RestClient]:
    """Factory for RestClients wired to the fake exchange."""

    def _make(credentials: Optional[Credentials] = None, **kwargs: Any) -> RestClient:
        kwargs.setdefault("logger", NoopLogger())
        return RestClient(
            base_url="https://api-testnet.bybit.com",
            credentials=credentials,
            http_client=exchange.http_client(),
            **kwargs,
        )

    return _make


@pytest.fixture
def credentials():
    return Credentials(api_key="XXXXXXXXXX", api_secret="test_secret")
