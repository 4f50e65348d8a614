from __future__ import annotations

from packscout.models.cache import ResolutionState, ShardCacheRecord
from packscout.models.registry import (
    FileDescriptor,
    HashRef,
    RawVersionMap,
    RegistryRootDocument,
    RegistryView,
    ShardFile,
)
from packscout.models.release import Release, ReleaseResult

__all__ = [
    # registry
    "RegistryRootDocument",
    "RegistryView",
    "FileDescriptor",
    "HashRef",
    "RawVersionMap",
    "ShardFile",
    # releases
    "Release",
    "ReleaseResult",
    # cache
    "ShardCacheRecord",
    "ResolutionState",
]
