"""Remote access: HTTP client, token cache and discovery throttle."""

from .auth import EXPIRY_BUFFER_MS, TokenCache
from .client import SpintaClient
from .throttle import RequestThrottle
from .types import (
    CachedToken,
    ChangeEntry,
    DiscoveredModel,
    NamespaceItem,
    SummaryBin,
    TokenResponse,
)

__all__ = [
    "SpintaClient",
    "TokenCache",
    "EXPIRY_BUFFER_MS",
    "RequestThrottle",
    "CachedToken",
    "ChangeEntry",
    "DiscoveredModel",
    "NamespaceItem",
    "SummaryBin",
    "TokenResponse",
]
