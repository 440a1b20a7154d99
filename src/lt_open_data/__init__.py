"""
Lithuanian Open Data client library

Query Spinta data services (data.gov.lt) with a fluent query builder,
automatic pagination, rate-limit backoff and OAuth client credentials.

Usage:
    from lt_open_data import SpintaClient, QueryBuilder

    client = SpintaClient()

    query = (
        QueryBuilder()
        .select("name", "population")
        .filter(lambda f: f.field("population").gt(100000))
        .limit(100)
    )
    cities = client.get_all("datasets/gov/example/City", query)

    # Every page, retrying through 429s
    for city in client.stream_with_retry("datasets/gov/example/City", query):
        print(city["name"])

    # Filters typed by a human
    from lt_open_data import parse_filter, apply_filters
    query = apply_filters(QueryBuilder(), [parse_filter("reg_data>=2025-01-01")])
"""

from .client import (
    ChangeEntry,
    DiscoveredModel,
    NamespaceItem,
    RequestThrottle,
    SpintaClient,
    SummaryBin,
    TokenCache,
)
from .config import ClientConfig, DiscoveryConfig, RetryConfig
from .errors import (
    AuthenticationError,
    LtDataError,
    NotFoundError,
    PartialFailureError,
    RateLimitError,
    SpintaError,
    UserError,
    ValidationError,
)
from .query import (
    FilterBuilder,
    QueryBuilder,
    apply_filters,
    filter_to_string,
    parse_filter,
)
from .schema import TypeTag, infer_schema

__version__ = "0.1.0"

__all__ = [
    # Client
    "SpintaClient",
    "TokenCache",
    "RequestThrottle",
    "ClientConfig",
    "RetryConfig",
    "DiscoveryConfig",
    # Query building
    "QueryBuilder",
    "FilterBuilder",
    "filter_to_string",
    "parse_filter",
    "apply_filters",
    # Schema
    "infer_schema",
    "TypeTag",
    # Result types
    "ChangeEntry",
    "DiscoveredModel",
    "NamespaceItem",
    "SummaryBin",
    # Exceptions
    "LtDataError",
    "UserError",
    "SpintaError",
    "ValidationError",
    "AuthenticationError",
    "NotFoundError",
    "RateLimitError",
    "PartialFailureError",
]
