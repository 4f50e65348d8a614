"""Single-package lookup against one registry.

The default registry is served from its dedicated per-package endpoint. Any
other registry is assembled once through ``RegistryResolutionCache`` and then
searched with ordered strategies: flat ``packages`` first, then packages
bundled in ``includes`` shards, then the per-package provider file. The first
strategy that knows the package wins.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING
from urllib.parse import urljoin, urlparse

import structlog
from pydantic import ValidationError

from packscout.config import DEFAULT_REGISTRY_URL
from packscout.errors import RegistryUnavailableError, TransportError, TransportErrorCode
from packscout.host_rules import request_options
from packscout.models.release import ReleaseResult
from packscout.releases import extract_releases
from packscout.root import HOST_TYPE
from packscout.templates import expand_template

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from packscout.models.registry import RegistryView
    from packscout.protocols import CacheProtocol, HostRulesProtocol, TransportProtocol
    from packscout.resolution import RegistryResolutionCache

log = structlog.get_logger()

PACKAGE_CACHE_NAMESPACE = "datasource-packagist-org"


def _package_versions(body: object, package_name: str) -> dict | None:
    """Read ``packages[<name>]`` from a per-package response body."""
    if not isinstance(body, dict):
        return None
    packages = body.get("packages")
    if not isinstance(packages, dict):
        return None
    versions = packages.get(package_name)
    if versions == []:
        return {}
    return versions if isinstance(versions, dict) else None


@dataclass(frozen=True)
class LookupStrategy:
    """One registry layout to search, in priority order."""

    name: str
    find: Callable[[str, RegistryView, str], Awaitable[ReleaseResult | None]]


class PackageLookupResolver:
    def __init__(
        self,
        transport: TransportProtocol,
        host_rules: HostRulesProtocol,
        cache: CacheProtocol,
        resolution_cache: RegistryResolutionCache,
        default_registry_url: str = DEFAULT_REGISTRY_URL,
        package_ttl_minutes: int = 10,
    ) -> None:
        self._transport = transport
        self._host_rules = host_rules
        self._cache = cache
        self._resolution_cache = resolution_cache
        self._default_registry_url = default_registry_url
        self._default_host = urlparse(default_registry_url).hostname
        self._package_ttl_minutes = package_ttl_minutes
        self.strategies: tuple[LookupStrategy, ...] = (
            LookupStrategy("packages", self._from_packages),
            LookupStrategy("includes", self._from_includes),
            LookupStrategy("providers", self._from_providers),
        )

    async def lookup(self, registry_url: str, package_name: str) -> ReleaseResult | None:
        """Resolve one package against one registry.

        Returns ``None`` for every per-registry failure. Raises
        ``RegistryUnavailableError`` only when the default registry times
        out, resets the connection or answers with a 5xx.
        """
        try:
            if registry_url == self._default_registry_url:
                return await self._default_registry_lookup(package_name)
            view = await self._resolution_cache.resolve(registry_url)
            if view is None:
                return None
            return await self.search_view(registry_url, view, package_name)
        except TransportError as exc:
            return self._handle_transport_error(exc, package_name)
        except ValidationError:
            log.warning(
                "package_lookup_invalid_response",
                package=package_name,
                registry_url=registry_url,
                exc_info=True,
            )
            return None
        except Exception:
            log.warning(
                "package_lookup_unexpected_error",
                package=package_name,
                registry_url=registry_url,
                exc_info=True,
            )
            return None

    async def search_view(
        self, registry_url: str, view: RegistryView, package_name: str
    ) -> ReleaseResult | None:
        for strategy in self.strategies:
            result = await strategy.find(registry_url, view, package_name)
            if result is not None:
                log.debug(
                    "package_lookup_match",
                    package=package_name,
                    registry_url=registry_url,
                    layout=strategy.name,
                    releases=len(result.releases),
                )
                return result
        return None

    def _handle_transport_error(self, exc: TransportError, package_name: str) -> None:
        if exc.status_code == 404 or exc.transport_code == TransportErrorCode.DNS_NOT_FOUND:
            log.debug("package_lookup_not_found", package=package_name, url=exc.url)
            return None
        if exc.host == self._default_host:
            if exc.transport_code in (
                TransportErrorCode.CONNECTION_RESET,
                TransportErrorCode.TIMEOUT,
            ):
                raise RegistryUnavailableError(exc) from exc
            if exc.status_code is not None and 500 <= exc.status_code < 600:
                raise RegistryUnavailableError(exc) from exc
        log.warning(
            "package_lookup_failure",
            package=package_name,
            url=exc.url,
            code=exc.transport_code,
            status_code=exc.status_code,
        )
        return None

    # ------------------------------------------------------------------
    # Default registry
    # ------------------------------------------------------------------

    async def _default_registry_lookup(self, package_name: str) -> ReleaseResult | None:
        cached = await self._cache.get(PACKAGE_CACHE_NAMESPACE, package_name)
        if cached is not None:
            return ReleaseResult.model_validate(cached)

        url = urljoin(self._default_registry_url, f"/p/{package_name}.json")
        response = await self._transport.get_json(url)
        versions = _package_versions(response.body, package_name)
        if versions is None:
            return None
        result = extract_releases(versions, name=package_name)
        await self._cache.set(
            PACKAGE_CACHE_NAMESPACE,
            package_name,
            result.model_dump(),
            self._package_ttl_minutes,
        )
        return result

    # ------------------------------------------------------------------
    # Layout strategies
    # ------------------------------------------------------------------

    async def _from_packages(
        self, registry_url: str, view: RegistryView, package_name: str
    ) -> ReleaseResult | None:
        if view.packages is None or package_name not in view.packages:
            return None
        return extract_releases(view.packages[package_name], name=package_name)

    async def _from_includes(
        self, registry_url: str, view: RegistryView, package_name: str
    ) -> ReleaseResult | None:
        return view.includes_packages.get(package_name)

    async def _from_providers(
        self, registry_url: str, view: RegistryView, package_name: str
    ) -> ReleaseResult | None:
        package_hash = view.provider_package_hashes.get(package_name)
        if package_hash is None:
            return None
        if not view.providers_url_template:
            log.warning(
                "providers_url_missing", package=package_name, registry_url=registry_url
            )
            return None

        url = urljoin(
            registry_url,
            expand_template(view.providers_url_template, package=package_name, hash=package_hash),
        )
        options = request_options(self._host_rules.find(HOST_TYPE, registry_url))
        response = await self._transport.get_json(
            url, auth=options.auth, headers=options.headers or None
        )
        versions = _package_versions(response.body, package_name)
        return extract_releases(versions, name=package_name)
