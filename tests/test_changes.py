"""Tests for change-log access."""

from datetime import datetime, timezone

import httpx

from conftest import error


def change(cid, op="insert", created="2024-03-01T10:00:00+00:00", **extra):
    entry = {
        "_cid": cid,
        "_created": created,
        "_op": op,
        "_id": f"id-{cid}",
        "_txn": "txn",
        "_revision": f"rev-{cid}",
        "_data": {"name": f"row {cid}"},
    }
    entry.update(extra)
    return entry


def changes(*cids):
    return httpx.Response(200, json={"_data": [change(c) for c in cids]})


class TestLatestChange:
    """Tests for the newest change entry."""

    def test_latest(self, client, api):
        api.push(changes(17))
        entry = client.get_latest_change("test/Model")

        assert api.paths == ["/test/Model/:changes/-1"]
        assert entry.cid == 17
        assert entry.op == "insert"
        assert entry.id == "id-17"
        assert entry.data == {"name": "row 17"}

    def test_empty_log(self, client, api):
        api.push(changes())
        assert client.get_latest_change("test/Model") is None

    def test_not_found_is_none(self, client, api):
        api.push(error(404))
        assert client.get_latest_change("test/Model") is None

    def test_last_updated_at(self, client, api):
        api.push(changes(3))
        assert client.get_last_updated_at("test/Model") == datetime(2024, 3, 1, 10, tzinfo=timezone.utc)

    def test_last_updated_at_without_history(self, client, api):
        api.push(error(404))
        assert client.get_last_updated_at("test/Model") is None

    def test_delete_without_data(self, client, api):
        entry = change(5, op="delete")
        del entry["_data"]
        api.push(httpx.Response(200, json={"_data": [entry]}))
        result = client.get_latest_change("test/Model")
        assert result.op == "delete"
        assert result.data is None


class TestGetChanges:
    """Tests for one page of the change log."""

    def test_url(self, client, api):
        api.push(changes(101, 102))
        result = client.get_changes("test/Model", since_id=100, limit=50)
        assert api.paths == ["/test/Model/:changes/100?limit(50)"]
        assert [c.cid for c in result] == [101, 102]

    def test_defaults(self, client, api):
        api.push(changes())
        client.get_changes("test/Model")
        assert api.paths == ["/test/Model/:changes/0?limit(100)"]

    def test_unknown_fields_kept(self, client, api):
        api.push(httpx.Response(200, json={"_data": [change(1, source="registry")]}))
        entry = client.get_changes("test/Model")[0]
        assert entry.model_extra == {"source": "registry"}


class TestStreamChanges:
    """Tests for walking the whole change log."""

    def test_pages_until_short_page(self, client, api):
        api.push(changes(1, 2), changes(3))
        result = list(client.stream_changes("test/Model", page_size=2))

        assert [c.cid for c in result] == [1, 2, 3]
        assert api.paths == [
            "/test/Model/:changes/0?limit(2)",
            "/test/Model/:changes/2?limit(2)",
        ]

    def test_full_last_page_needs_one_more_call(self, client, api):
        api.push(changes(1, 2), changes())
        assert [c.cid for c in client.stream_changes("test/Model", page_size=2)] == [1, 2]
        assert len(api.requests) == 2

    def test_empty_log_single_call(self, client, api):
        api.push(changes())
        assert list(client.stream_changes("test/Model", since_id=10)) == []
        assert api.paths == ["/test/Model/:changes/10?limit(100)"]
