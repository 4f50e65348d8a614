from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class Release(BaseModel):
    version: str  # Canonical form, leading "v" stripped
    source_ref: str  # Version key exactly as published, used as the checkout ref
    release_timestamp: Any = None  # Carried verbatim, not parsed or validated


class ReleaseResult(BaseModel):
    """Releases and auxiliary metadata for one package."""

    name: str | None = None
    releases: list[Release] = []
    homepage: str | None = None
    source_url: str | None = None
