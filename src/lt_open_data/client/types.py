"""Wire models and result types for the data client."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class TokenResponse(BaseModel):
    """OAuth token endpoint response."""

    access_token: str
    token_type: str = "Bearer"
    expires_in: int = Field(..., description="Token lifetime in seconds")
    scope: str | None = None


class ChangeEntry(BaseModel):
    """One entry from the /:changes log of a model."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    cid: int = Field(..., alias="_cid", description="Monotonic change id")
    created: datetime | None = Field(None, alias="_created")
    op: Literal["insert", "update", "patch", "delete"] | None = Field(None, alias="_op")
    txn: str | None = Field(None, alias="_txn")
    revision: str | None = Field(None, alias="_revision")
    id: str | None = Field(None, alias="_id")
    data: dict[str, Any] | None = Field(None, alias="_data", description="Absent for deletes")


class SummaryBin(BaseModel):
    """One histogram bucket from /:summary/{field}."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    bin: Any
    count: int
    id: str | None = Field(None, alias="_id")


@dataclass
class CachedToken:
    """Access token with absolute expiry (epoch milliseconds)."""
    access_token: str
    expires_at: float


@dataclass(frozen=True)
class NamespaceItem:
    """Entry of a namespace listing: a sub-namespace or a model."""
    id: str
    type: Literal["ns", "model"]
    title: str | None = None

    @property
    def is_namespace(self) -> bool:
        return self.type == "ns"


@dataclass(frozen=True)
class DiscoveredModel:
    """Model found while walking a namespace tree."""
    path: str
    namespace: str
    title: str | None = None
