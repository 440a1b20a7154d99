"""Tests for namespace listing and recursive model discovery."""

import threading
import time

import httpx
import pytest

from conftest import MockApi
from lt_open_data.client import DiscoveredModel, NamespaceItem, RequestThrottle, SpintaClient
from lt_open_data.errors import NotFoundError

TREE = {
    "datasets": [
        {"name": "datasets/gov/:ns", "title": "Government"},
        {"name": "datasets/Top", "title": "Top model"},
    ],
    "datasets/gov": [
        {"name": "datasets/gov/rc/:ns", "title": "Registry"},
        {"name": "datasets/gov/vmi/:ns", "title": None},
    ],
    "datasets/gov/rc": [
        {"name": "datasets/gov/rc/Company", "title": "Companies"},
        {"name": "datasets/gov/rc/Person"},
    ],
    "datasets/gov/vmi": [
        {"name": "datasets/gov/vmi/Tax", "title": "Taxes"},
    ],
}


def namespace_handler(tree):
    def handler(request):
        path = request.url.path.lstrip("/")
        assert path.endswith("/:ns")
        ns = path[: -len("/:ns")]
        if ns not in tree:
            return httpx.Response(404, json={"errors": [{"message": "not found"}]})
        return httpx.Response(200, json={"_data": tree[ns]})
    return handler


@pytest.fixture
def tree_client(config, sleeps):
    api = MockApi(namespace_handler(TREE))
    http = httpx.Client(transport=httpx.MockTransport(api))
    client = SpintaClient(config, http=http, sleep=sleeps.append)
    client.api = api
    return client


class TestListNamespace:
    """Tests for a single namespace listing."""

    def test_items(self, tree_client):
        items = tree_client.list_namespace("datasets")
        assert items == [
            NamespaceItem(id="datasets/gov", type="ns", title="Government"),
            NamespaceItem(id="datasets/Top", type="model", title="Top model"),
        ]
        assert items[0].is_namespace
        assert not items[1].is_namespace

    def test_url(self, tree_client):
        tree_client.list_namespace("datasets/gov")
        assert tree_client.api.paths == ["/datasets/gov/:ns"]


class TestDiscoverModels:
    """Tests for the recursive walk."""

    def test_finds_every_model(self, tree_client):
        models = tree_client.discover_models("datasets", concurrency=2, min_request_interval_ms=0)

        assert sorted(m.path for m in models) == [
            "datasets/Top",
            "datasets/gov/rc/Company",
            "datasets/gov/rc/Person",
            "datasets/gov/vmi/Tax",
        ]
        assert len(tree_client.api.requests) == 4

    def test_model_namespace_and_title(self, tree_client):
        models = {m.path: m for m in tree_client.discover_models("datasets", min_request_interval_ms=0)}
        assert models["datasets/gov/rc/Company"] == DiscoveredModel(
            path="datasets/gov/rc/Company",
            namespace="datasets/gov/rc",
            title="Companies",
        )
        assert models["datasets/gov/rc/Person"].title is None

    def test_breadth_first_order(self, tree_client):
        models = tree_client.discover_models("datasets", concurrency=1, min_request_interval_ms=0)
        assert [m.path for m in models] == [
            "datasets/Top",
            "datasets/gov/rc/Company",
            "datasets/gov/rc/Person",
            "datasets/gov/vmi/Tax",
        ]

    def test_empty_namespace(self, config):
        api = MockApi(namespace_handler({"empty": []}))
        client = SpintaClient(config, http=httpx.Client(transport=httpx.MockTransport(api)))
        assert client.discover_models("empty", min_request_interval_ms=0) == []

    def test_error_propagates(self, config):
        tree = {"root": [{"name": "root/missing/:ns"}]}
        api = MockApi(namespace_handler(tree))
        client = SpintaClient(config, http=httpx.Client(transport=httpx.MockTransport(api)))
        with pytest.raises(NotFoundError):
            client.discover_models("root", min_request_interval_ms=0)

    def test_invalid_concurrency(self, tree_client):
        with pytest.raises(ValueError):
            tree_client.discover_models("datasets", concurrency=-1)

    def test_zero_concurrency_rejected(self, tree_client):
        with pytest.raises(ValueError):
            tree_client.discover_models("datasets", concurrency=0)
        assert tree_client.api.requests == []

    def test_request_starts_spaced_by_interval(self, tree_client):
        # Frozen clock: each sleep is the offset of a reserved start from t=0
        lock = threading.Lock()
        delays = []

        def record(seconds):
            with lock:
                delays.append(seconds)

        throttle = RequestThrottle(min_interval_ms=50, clock=lambda: 0.0, sleep=record)
        tree_client.discover_models("datasets", concurrency=2, throttle=throttle)

        starts = sorted([0.0] + delays)
        assert len(starts) == 4
        gaps = [b - a for a, b in zip(starts, starts[1:])]
        assert all(gap >= 0.05 - 1e-9 for gap in gaps)

    def test_uses_throttle(self, tree_client):
        throttle = RequestThrottle(min_interval_ms=0)
        tree_client.discover_models("datasets", throttle=throttle)
        assert throttle.stats["total_requests"] == 4

    def test_concurrency_bound(self, config):
        # Wide tree: 10 sibling namespaces, each holding one model
        tree = {"root": [{"name": f"root/ns{i}/:ns"} for i in range(10)]}
        for i in range(10):
            tree[f"root/ns{i}"] = [{"name": f"root/ns{i}/M"}]

        lock = threading.Lock()
        state = {"active": 0, "peak": 0}
        inner = namespace_handler(tree)

        def handler(request):
            with lock:
                state["active"] += 1
                state["peak"] = max(state["peak"], state["active"])
            try:
                time.sleep(0.01)
                return inner(request)
            finally:
                with lock:
                    state["active"] -= 1

        api = MockApi(handler)
        client = SpintaClient(config, http=httpx.Client(transport=httpx.MockTransport(api)))

        models = client.discover_models("root", concurrency=3, min_request_interval_ms=0)

        assert len(models) == 10
        assert state["peak"] <= 3
