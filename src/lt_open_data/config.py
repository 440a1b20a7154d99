"""Client configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

DEFAULT_BASE_URL = "https://get.data.gov.lt"
DEFAULT_AUTH_URL = "https://put.data.gov.lt"
DEFAULT_SCOPES = (
    "spinta_getone",
    "spinta_getall",
    "spinta_search",
    "spinta_changes",
)


def _env_scopes() -> list[str]:
    raw = os.environ.get("LT_DATA_SCOPES")
    if not raw:
        return list(DEFAULT_SCOPES)
    return [s for s in raw.replace(",", " ").split() if s]


@dataclass
class RetryConfig:
    """Backoff policy for streaming through rate limits."""
    page_size: int = 100
    initial_backoff_ms: int = 1000
    max_backoff_ms: int = 30000
    max_attempts: int = 5
    # Fail on the first 429 instead of sleeping
    no_retry: bool = False

    def backoff_ms(self, attempt: int) -> int:
        """Delay before retry number `attempt` (1-based)."""
        return min(self.initial_backoff_ms * 2 ** (attempt - 1), self.max_backoff_ms)


@dataclass
class DiscoveryConfig:
    """Namespace discovery fan-out limits."""
    concurrency: int = 8
    min_request_interval_ms: int = 50


@dataclass
class ClientConfig:
    """
    Configuration for the open data client.

    Can be set via:
    - Constructor arguments
    - Environment variables (LT_DATA_*)
    - YAML or JSON config file
    """
    # Data API URL
    base_url: str = field(
        default_factory=lambda: os.environ.get("LT_DATA_BASE_URL", DEFAULT_BASE_URL)
    )

    # OAuth server (separate host on data.gov.lt)
    auth_url: str = field(
        default_factory=lambda: os.environ.get("LT_DATA_AUTH_URL", DEFAULT_AUTH_URL)
    )

    # Client credentials; without both only public data is reachable
    client_id: str | None = field(
        default_factory=lambda: os.environ.get("LT_DATA_CLIENT_ID")
    )
    client_secret: str | None = field(
        default_factory=lambda: os.environ.get("LT_DATA_CLIENT_SECRET")
    )
    scopes: list[str] = field(default_factory=_env_scopes)

    # Request timeout (seconds)
    timeout: float = field(
        default_factory=lambda: float(os.environ.get("LT_DATA_TIMEOUT", "30"))
    )

    retry: RetryConfig = field(default_factory=RetryConfig)
    discovery: DiscoveryConfig = field(default_factory=DiscoveryConfig)

    def __post_init__(self):
        self.base_url = self.base_url.rstrip("/")
        self.auth_url = self.auth_url.rstrip("/")

    @property
    def has_credentials(self) -> bool:
        return self.client_id is not None and self.client_secret is not None

    @classmethod
    def from_dict(cls, data: dict) -> ClientConfig:
        """Create config from dictionary. Missing keys fall back to defaults."""
        data = dict(data)
        retry = RetryConfig(**data.pop("retry", None) or {})
        discovery = DiscoveryConfig(**data.pop("discovery", None) or {})
        if isinstance(data.get("scopes"), str):
            data["scopes"] = data["scopes"].split()
        return cls(retry=retry, discovery=discovery, **data)

    @classmethod
    def from_yaml(cls, path: str) -> ClientConfig:
        """Load config from YAML file."""
        import yaml
        with open(path, "r") as f:
            data = yaml.safe_load(f)
        return cls.from_dict(data or {})

    @classmethod
    def from_json(cls, path: str) -> ClientConfig:
        """Load config from JSON file."""
        import json
        with open(path, "r") as f:
            data = json.load(f)
        return cls.from_dict(data)
