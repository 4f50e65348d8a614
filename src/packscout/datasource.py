"""Public entry point: releases for a package across ordered registries."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from packscout.config import DEFAULT_REGISTRY_URL

if TYPE_CHECKING:
    from collections.abc import Sequence

    from packscout.lookup import PackageLookupResolver
    from packscout.models.release import ReleaseResult

log = structlog.get_logger()


class PackagistDatasource:
    def __init__(
        self,
        resolver: PackageLookupResolver,
        default_registry_url: str = DEFAULT_REGISTRY_URL,
    ) -> None:
        self._resolver = resolver
        self._default_registry_url = default_registry_url

    async def get_releases(
        self,
        package_name: str,
        registry_urls: Sequence[str] | None = None,
    ) -> ReleaseResult | None:
        """Try each registry in order and return the first result found.

        With no registries given, only the default registry is consulted.
        ``None`` means no registry knew the package; per-registry failures
        are not reported here.
        """
        registries = list(registry_urls) if registry_urls else [self._default_registry_url]
        log.debug("get_releases", package=package_name, registries=registries)
        for registry_url in registries:
            result = await self._resolver.lookup(registry_url, package_name)
            if result is not None:
                return result
        return None
