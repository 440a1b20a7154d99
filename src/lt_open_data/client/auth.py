"""OAuth client-credentials token management."""

from __future__ import annotations

import base64
import logging
import time
from typing import Callable, Sequence

import httpx
from pydantic import ValidationError as PydanticValidationError

from ..errors import AuthenticationError
from .types import CachedToken, TokenResponse

logger = logging.getLogger(__name__)

# Refresh this long before the server-side expiry
EXPIRY_BUFFER_MS = 5 * 60 * 1000


def _now_ms() -> float:
    return time.time() * 1000


class TokenCache:
    """
    Caches a bearer token and refreshes it shortly before it expires.

    States: empty -> valid(token, expires_at) -> (near expiry) -> refreshed.
    clear() returns to empty. Concurrent refreshes are tolerated: the last
    one to finish wins and every result is an equally good token.
    """

    def __init__(
        self,
        auth_url: str,
        client_id: str,
        client_secret: str,
        scopes: Sequence[str],
        http: httpx.Client | None = None,
        clock: Callable[[], float] | None = None,
        timeout: float = 30.0,
    ):
        self.auth_url = auth_url.rstrip("/")
        self.client_id = client_id
        self.client_secret = client_secret
        self.scopes = tuple(scopes)
        self._http = http
        self._clock = clock or _now_ms
        self._timeout = timeout
        self._token: CachedToken | None = None

    @property
    def token(self) -> CachedToken | None:
        return self._token

    def is_valid(self) -> bool:
        """True if a token is cached and not within the expiry buffer."""
        if self._token is None:
            return False
        return self._clock() < self._token.expires_at - EXPIRY_BUFFER_MS

    def get_token(self) -> str:
        """Return the cached token, fetching a new one if needed."""
        if not self.is_valid():
            self.refresh()

        if self._token is None:
            raise AuthenticationError("Failed to obtain access token")

        return self._token.access_token

    def refresh(self) -> None:
        """
        Fetch a new token from the auth server and replace the cache.

        Raises:
            AuthenticationError: If the server rejects the credentials
        """
        url = f"{self.auth_url}/auth/token"
        credentials = base64.b64encode(
            f"{self.client_id}:{self.client_secret}".encode()
        ).decode()

        logger.debug(f"Requesting token from {url}")
        response = self._post(
            url,
            headers={"Authorization": f"Basic {credentials}"},
            data={
                "grant_type": "client_credentials",
                "scope": " ".join(self.scopes),
            },
        )

        if not response.is_success:
            message = "Failed to obtain access token"
            body = None
            try:
                body = response.json()
            except ValueError:
                pass
            if isinstance(body, dict) and isinstance(body.get("error_description"), str):
                message = body["error_description"]
            raise AuthenticationError(
                message, response.status_code, body if isinstance(body, dict) else None
            )

        try:
            data = TokenResponse.model_validate(response.json())
        except (ValueError, PydanticValidationError) as e:
            raise AuthenticationError(f"Malformed token response: {e}", response.status_code) from e

        self._token = CachedToken(
            access_token=data.access_token,
            expires_at=self._clock() + data.expires_in * 1000,
        )
        logger.info(f"Obtained access token (expires in {data.expires_in}s)")

    def clear(self) -> None:
        """Drop the cached token; the next get_token() refreshes."""
        self._token = None

    def _post(self, url: str, **kwargs) -> httpx.Response:
        if self._http is not None:
            return self._http.post(url, **kwargs)
        with httpx.Client(timeout=self._timeout) as client:
            return client.post(url, **kwargs)
