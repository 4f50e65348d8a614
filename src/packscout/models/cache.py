from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel


class ShardCacheRecord(BaseModel):
    """Persisted shard content, tagged with the hash it was requested under."""

    content: dict[str, Any]
    content_hash: str


class ResolutionState(StrEnum):
    PENDING = "pending"
    RESOLVED = "resolved"
    FAILED = "failed"
