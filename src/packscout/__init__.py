"""Release metadata resolution for Composer-style package registries."""

from __future__ import annotations

from packscout.datasource import PackagistDatasource
from packscout.errors import PackScoutError, RegistryUnavailableError, TransportError
from packscout.models.release import Release, ReleaseResult

__all__ = [
    "PackagistDatasource",
    "PackScoutError",
    "RegistryUnavailableError",
    "TransportError",
    "Release",
    "ReleaseResult",
]
