"""Exception types for the open data client."""

from __future__ import annotations

import json
from typing import Any

import httpx


class LtDataError(Exception):
    """Base exception for open data client errors."""
    def __init__(self, message: str, hint: str | None = None):
        super().__init__(message)
        self.message = message
        self.hint = hint


class UserError(LtDataError):
    """Invalid input from the caller (bad filter syntax, missing argument)."""
    pass


class SpintaError(LtDataError):
    """Error response from the data service."""
    def __init__(
        self,
        message: str,
        status: int,
        body: dict[str, Any] | None = None,
        hint: str | None = None,
    ):
        super().__init__(message, hint)
        self.status = status
        self.body = body


class ValidationError(SpintaError):
    """Service rejected the request (400), usually bad query parameters."""
    def __init__(self, message: str = "Validation error", body: dict[str, Any] | None = None):
        super().__init__(message, 400, body)


class AuthenticationError(SpintaError):
    """Missing, invalid or insufficient credentials (401/403)."""
    def __init__(
        self,
        message: str = "Authentication failed",
        status: int = 401,
        body: dict[str, Any] | None = None,
    ):
        super().__init__(message, status, body)


class NotFoundError(SpintaError):
    """Model or object not found (404)."""
    def __init__(self, message: str = "Resource not found", body: dict[str, Any] | None = None):
        super().__init__(message, 404, body)


class RateLimitError(SpintaError):
    """Service kept answering 429 after the retry budget was spent."""
    def __init__(
        self,
        message: str = "Rate limit exceeded",
        body: dict[str, Any] | None = None,
        records_fetched: int = 0,
        attempts: int = 1,
    ):
        super().__init__(
            message,
            429,
            body,
            hint=f"Fetched {records_fetched} records before rate limit",
        )
        self.records_fetched = records_fetched
        self.attempts = attempts


class PartialFailureError(LtDataError):
    """A stream aborted after some records were already delivered."""
    def __init__(
        self,
        message: str,
        records_fetched: int,
        cause: BaseException | None = None,
        records: list[Any] | None = None,
    ):
        super().__init__(message, hint=f"{records_fetched} records were fetched before the failure")
        self.records_fetched = records_fetched
        self.cause = cause
        self.records = records if records is not None else []


def _parse_body(response: httpx.Response) -> dict[str, Any] | None:
    try:
        text = response.text
        if not text:
            return None
        body = json.loads(text)
    except (ValueError, UnicodeDecodeError):
        return None
    return body if isinstance(body, dict) else None


def error_message(body: dict[str, Any] | None, default: str) -> str:
    """Pick the most useful message out of an error envelope."""
    if body:
        if isinstance(body.get("message"), str):
            return body["message"]
        errors = body.get("errors")
        if isinstance(errors, list) and errors:
            first = errors[0]
            if isinstance(first, dict) and isinstance(first.get("message"), str):
                return first["message"]
    return default


def raise_for_response(response: httpx.Response) -> None:
    """
    Raise the matching SpintaError subclass for a non-success response.

    Args:
        response: Response from the data service

    Raises:
        ValidationError: 400
        AuthenticationError: 401, 403
        NotFoundError: 404
        RateLimitError: 429
        SpintaError: any other non-2xx status
    """
    if response.is_success:
        return

    body = _parse_body(response)
    message = error_message(body, response.reason_phrase or f"HTTP {response.status_code}")
    status = response.status_code

    if status == 400:
        raise ValidationError(message, body)
    if status in (401, 403):
        raise AuthenticationError(message, status, body)
    if status == 404:
        raise NotFoundError(message, body)
    if status == 429:
        raise RateLimitError(message, body)
    raise SpintaError(message, status, body)
