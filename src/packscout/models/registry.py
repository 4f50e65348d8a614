from __future__ import annotations

from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from packscout.models.release import ReleaseResult


def _empty_list_as_dict(value: Any) -> Any:
    """Registries written in PHP serialize an empty map as ``[]``."""
    return {} if value == [] else value


PhpMap = BeforeValidator(_empty_list_as_dict)

# Raw version map as published: version string → release metadata dict.
RawVersionMap = Annotated[dict[str, Any], PhpMap]


class HashRef(BaseModel):
    """A ``{"sha256": ...}`` pointer as published in registry documents."""

    sha256: str


class RegistryRootDocument(BaseModel):
    """The registry's ``packages.json`` as published."""

    model_config = ConfigDict(populate_by_name=True)

    packages: Annotated[dict[str, RawVersionMap], PhpMap] | None = None
    includes: Annotated[dict[str, HashRef], PhpMap] | None = None
    provider_includes: Annotated[dict[str, HashRef], PhpMap] | None = Field(
        default=None, alias="provider-includes"
    )
    providers: Annotated[dict[str, HashRef], PhpMap] | None = None
    providers_url: str | None = Field(default=None, alias="providers-url")


class FileDescriptor(BaseModel):
    """A hash-addressed metadata file; ``key`` may contain ``%hash%``."""

    model_config = ConfigDict(frozen=True)

    key: str
    hash: str


class ShardFile(BaseModel):
    """A fetched provider-includes or includes shard."""

    providers: Annotated[dict[str, HashRef], PhpMap] = {}
    packages: Annotated[dict[str, RawVersionMap], PhpMap] | None = None


class RegistryView(BaseModel):
    """Normalized per-registry state assembled from the root and its shards."""

    model_config = ConfigDict(frozen=True)

    packages: dict[str, RawVersionMap] | None = None
    providers_url_template: str | None = None
    provider_package_hashes: dict[str, str] = {}
    shard_file_descriptors: list[FileDescriptor] = []
    includes_file_descriptors: list[FileDescriptor] = []
    includes_packages: dict[str, ReleaseResult] = {}
