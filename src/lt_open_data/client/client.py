"""HTTP client for the Spinta open data API (data.gov.lt)."""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Any, Callable, Iterator

import httpx

from ..config import ClientConfig, RetryConfig
from ..errors import (
    LtDataError,
    NotFoundError,
    PartialFailureError,
    RateLimitError,
    raise_for_response,
)
from ..query.builder import QueryBuilder, append_clause, page_clause
from .auth import TokenCache
from .throttle import RequestThrottle
from .types import ChangeEntry, DiscoveredModel, NamespaceItem, SummaryBin

logger = logging.getLogger(__name__)

NS_SUFFIX = "/:ns"


class SpintaClient:
    """
    Client for reading models from a Spinta data service.

    Usage:
        client = SpintaClient()
        cities = client.get_all("datasets/gov/example/City")

        query = QueryBuilder().filter(lambda f: f.field("population").gt(100000))
        for city in client.stream("datasets/gov/example/City", query):
            print(city["name"])

        # Authenticated access
        client = SpintaClient(ClientConfig(client_id="...", client_secret="..."))
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        http: httpx.Client | None = None,
        sleep: Callable[[float], None] | None = None,
        token_cache: TokenCache | None = None,
    ):
        self.config = config or ClientConfig()
        self._owns_http = http is None
        self._http = http or httpx.Client(timeout=self.config.timeout)
        self._sleep = sleep or time.sleep

        if token_cache is None and self.config.has_credentials:
            token_cache = TokenCache(
                self.config.auth_url,
                self.config.client_id,
                self.config.client_secret,
                self.config.scopes,
                http=self._http,
                timeout=self.config.timeout,
            )
        self.token_cache = token_cache

    @property
    def base_url(self) -> str:
        return self.config.base_url

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> SpintaClient:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _get_headers(self) -> dict[str, str]:
        """Build request headers. Checks token validity on every call."""
        headers = {"Accept": "application/json"}
        if self.token_cache is not None:
            headers["Authorization"] = f"Bearer {self.token_cache.get_token()}"
        return headers

    def _request(self, path: str, query: str = "") -> Any:
        url = f"{self.base_url}{path}{query}"
        logger.debug(f"GET {url}")
        response = self._http.get(url, headers=self._get_headers())
        raise_for_response(response)
        return response.json()

    # ------------------------------------------------------------------
    # Reading data
    # ------------------------------------------------------------------

    def get_one(self, model: str, id: str) -> dict[str, Any]:
        """Get a single object by its UUID."""
        return self._request(f"/{model}/{id}")

    def get_all_raw(self, model: str, query: QueryBuilder | None = None) -> dict[str, Any]:
        """
        Fetch one page and return the whole envelope.

        Returns:
            {"_type": ..., "_data": [...], "_page": {"next": cursor}}
        """
        query_string = query.to_query_string() if query is not None else ""
        return self._request(f"/{model}", query_string)

    def get_all(self, model: str, query: QueryBuilder | None = None) -> list[dict[str, Any]]:
        """
        Fetch ONE page of objects (the query limit or the API default).

        Use stream() to walk every page.
        """
        return self.get_all_raw(model, query).get("_data", [])

    def count(self, model: str, query: QueryBuilder | None = None) -> int:
        """Count objects matching the query filters."""
        counted = query.clone() if query is not None else QueryBuilder()
        response = self._request(f"/{model}", counted.count().to_query_string())
        return response["_data"][0]["count()"]

    def stream(self, model: str, query: QueryBuilder | None = None) -> Iterator[dict[str, Any]]:
        """
        Yield every object, following page cursors until the last page.

        The query limit (if any) acts as page size. Stop iterating to cancel.
        """
        path = f"/{model}"
        base_query = query.to_query_string() if query is not None else ""
        cursor: str | None = None

        while True:
            query_string = base_query
            if cursor is not None:
                query_string = append_clause(base_query, page_clause(cursor))

            response = self._request(path, query_string)
            yield from response.get("_data", [])

            cursor = (response.get("_page") or {}).get("next")
            if not cursor:
                return

    def stream_with_retry(
        self,
        model: str,
        query: QueryBuilder | None = None,
        options: RetryConfig | None = None,
    ) -> Iterator[dict[str, Any]]:
        """
        Like stream(), but sleeps and retries a page answered with 429.

        Backoff for attempt n is min(initial * 2**(n-1), max) milliseconds.
        Once max_attempts is reached (or immediately when no_retry is set) a
        RateLimitError is raised whose `records_fetched` tells how many
        objects were already yielded. Other errors are not retried.
        """
        options = options or self.config.retry
        path = f"/{model}"

        paged = query.clone() if query is not None else QueryBuilder()
        if not paged.has_limit:
            paged.limit(options.page_size)
        base_query = paged.to_query_string()

        cursor: str | None = None
        fetched = 0

        while True:
            query_string = base_query
            if cursor is not None:
                query_string = append_clause(base_query, page_clause(cursor))

            response = self._fetch_page(path, query_string, options, fetched)
            for item in response.get("_data", []):
                fetched += 1
                yield item

            cursor = (response.get("_page") or {}).get("next")
            if not cursor:
                return

    def fetch_all(
        self,
        model: str,
        query: QueryBuilder | None = None,
        max_records: int | None = None,
        options: RetryConfig | None = None,
    ) -> list[dict[str, Any]]:
        """
        Collect a retrying stream into a list.

        Raises:
            RateLimitError: Retries ran out; `records_fetched` counts what
                arrived before the limit.
            PartialFailureError: The stream broke for any other reason after
                some records arrived; the error carries them in `records`.
        """
        records: list[dict[str, Any]] = []
        if max_records is not None and max_records <= 0:
            return records
        try:
            for item in self.stream_with_retry(model, query, options):
                records.append(item)
                if max_records is not None and len(records) >= max_records:
                    break
        except RateLimitError:
            raise
        except LtDataError as e:
            if not records:
                raise
            raise PartialFailureError(
                f"Stream interrupted after {len(records)} records: {e.message}",
                len(records),
                cause=e,
                records=records,
            ) from e
        return records

    def _fetch_page(
        self,
        path: str,
        query_string: str,
        options: RetryConfig,
        fetched: int,
    ) -> dict[str, Any]:
        attempt = 0
        while True:
            attempt += 1
            try:
                return self._request(path, query_string)
            except RateLimitError as e:
                if options.no_retry or attempt >= options.max_attempts:
                    raise RateLimitError(
                        f"Rate limited after {fetched} records fetched",
                        e.body,
                        records_fetched=fetched,
                        attempts=attempt,
                    ) from e
                delay_ms = options.backoff_ms(attempt)
                logger.warning(
                    f"Rate limited on {path} (attempt {attempt}/{options.max_attempts}), "
                    f"retrying in {delay_ms}ms"
                )
                self._sleep(delay_ms / 1000)

    # ------------------------------------------------------------------
    # Namespaces
    # ------------------------------------------------------------------

    def list_namespace(self, namespace: str) -> list[NamespaceItem]:
        """
        List sub-namespaces and models directly under a namespace.

        The API names namespaces "path/:ns" and models "path/Model".
        """
        response = self._request(f"/{namespace}{NS_SUFFIX}")
        items = []
        for raw in response.get("_data", []):
            name = raw["name"]
            is_namespace = name.endswith(NS_SUFFIX)
            items.append(NamespaceItem(
                id=name[: -len(NS_SUFFIX)] if is_namespace else name,
                type="ns" if is_namespace else "model",
                title=raw.get("title"),
            ))
        return items

    def discover_models(
        self,
        namespace: str,
        concurrency: int | None = None,
        min_request_interval_ms: float | None = None,
        throttle: RequestThrottle | None = None,
    ) -> list[DiscoveredModel]:
        """
        Recursively collect every model below a namespace.

        Sibling namespaces are listed in batches of at most `concurrency`
        parallel requests, and request starts are spaced at least
        `min_request_interval_ms` apart.
        """
        settings = self.config.discovery
        if concurrency is None:
            concurrency = settings.concurrency
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        if throttle is None:
            interval = (
                settings.min_request_interval_ms
                if min_request_interval_ms is None
                else min_request_interval_ms
            )
            throttle = RequestThrottle(interval, sleep=self._sleep)

        def list_one(ns: str) -> list[NamespaceItem]:
            throttle.wait()
            return self.list_namespace(ns)

        models: list[DiscoveredModel] = []
        pending = [namespace]

        with ThreadPoolExecutor(max_workers=concurrency) as pool:
            while pending:
                batch, pending = pending[:concurrency], pending[concurrency:]
                for ns, items in zip(batch, pool.map(list_one, batch)):
                    for item in items:
                        if item.is_namespace:
                            pending.append(item.id)
                        else:
                            models.append(DiscoveredModel(path=item.id, namespace=ns, title=item.title))

        logger.info(f"Discovered {len(models)} models under {namespace}")
        return models

    # ------------------------------------------------------------------
    # Change log
    # ------------------------------------------------------------------

    def get_latest_change(self, model: str) -> ChangeEntry | None:
        """Newest change entry, or None when the model has no history."""
        try:
            response = self._request(f"/{model}/:changes/-1")
        except NotFoundError:
            return None
        data = response.get("_data") or []
        if not data:
            return None
        return ChangeEntry.model_validate(data[0])

    def get_last_updated_at(self, model: str) -> datetime | None:
        """Timestamp of the newest change, or None."""
        change = self.get_latest_change(model)
        return change.created if change is not None else None

    def get_changes(self, model: str, since_id: int = 0, limit: int = 100) -> list[ChangeEntry]:
        """Changes with ids after `since_id`, oldest first."""
        response = self._request(f"/{model}/:changes/{since_id}", f"?limit({limit})")
        return [ChangeEntry.model_validate(c) for c in response.get("_data", [])]

    def stream_changes(
        self,
        model: str,
        since_id: int = 0,
        page_size: int = 100,
    ) -> Iterator[ChangeEntry]:
        """Yield changes page by page; a short page marks the end of the log."""
        while True:
            changes = self.get_changes(model, since_id, page_size)
            yield from changes
            if len(changes) < page_size:
                return
            since_id = changes[-1].cid

    # ------------------------------------------------------------------
    # Summaries
    # ------------------------------------------------------------------

    def get_summary(self, model: str, field: str) -> list[SummaryBin]:
        """Server-side histogram of a field."""
        response = self._request(f"/{model}/:summary/{field}")
        return [SummaryBin.model_validate(b) for b in response.get("_data", [])]
