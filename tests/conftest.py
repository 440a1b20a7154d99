"""Shared test fixtures for the open data client tests.

HTTP is served by httpx.MockTransport; no test touches the network.
"""

from urllib.parse import unquote

import httpx
import pytest

from lt_open_data.client import SpintaClient
from lt_open_data.config import ClientConfig

BASE_URL = "https://test.api"
AUTH_URL = "https://auth.test"


class MockApi:
    """
    Scripted transport: routes requests to a handler and records them.

    `responses` may be a list consumed in order (one response per request)
    or a handler callable taking the request.
    """

    def __init__(self, responses=None):
        self.requests: list[httpx.Request] = []
        self._queue = []
        self._handler = None
        if callable(responses):
            self._handler = responses
        elif responses is not None:
            self._queue = list(responses)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self._handler is not None:
            return self._handler(request)
        if not self._queue:
            raise AssertionError(f"Unexpected request: {request.url}")
        return self._queue.pop(0)

    def push(self, *responses: httpx.Response) -> None:
        self._queue.extend(responses)

    @property
    def urls(self) -> list[str]:
        """Requested URLs, decoded so quotes and pipes read naturally."""
        return [unquote(str(r.url)) for r in self.requests]

    @property
    def paths(self) -> list[str]:
        """Requested path plus query, decoded, without scheme and host."""
        return [url[len(BASE_URL):] for url in self.urls]


def page(data, next_cursor=None, status=200):
    """A Spinta getall envelope."""
    body = {"_type": "test/Model", "_data": data}
    if next_cursor is not None:
        body["_page"] = {"next": next_cursor}
    return httpx.Response(status, json=body)


def error(status, message=None):
    body = {"errors": [{"message": message}]} if message else {}
    return httpx.Response(status, json=body)


@pytest.fixture
def api():
    return MockApi()


@pytest.fixture
def sleeps():
    """Records requested sleep durations (seconds) instead of sleeping."""
    return []


@pytest.fixture
def config():
    return ClientConfig(
        base_url=BASE_URL,
        auth_url=AUTH_URL,
        client_id=None,
        client_secret=None,
    )


@pytest.fixture
def client(api, config, sleeps):
    http = httpx.Client(transport=httpx.MockTransport(api))
    with SpintaClient(config, http=http, sleep=sleeps.append) as c:
        yield c
    http.close()
