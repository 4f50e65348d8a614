"""Application state container.

AppState is built once per process by ``create_app_state`` and owns every
shared collaborator, including the registry resolution cache that
de-duplicates assembly across concurrent lookups.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import aiosqlite
import structlog

from packscout.cache import Cache
from packscout.datasource import PackagistDatasource
from packscout.host_rules import HostRules
from packscout.lookup import PackageLookupResolver
from packscout.resolution import RegistryResolutionCache
from packscout.shards import ShardFileResolver
from packscout.transport import Transport, build_http_client

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    import httpx

    from packscout.config import Settings

log = structlog.get_logger()


@dataclass
class AppState:
    """Holds all shared runtime state."""

    settings: Settings
    http_client: httpx.AsyncClient
    cache: Cache
    transport: Transport
    host_rules: HostRules
    resolution_cache: RegistryResolutionCache
    datasource: PackagistDatasource


def build_app_state(settings: Settings, http_client: httpx.AsyncClient, cache: Cache) -> AppState:
    transport = Transport(http_client)
    host_rules = HostRules(settings.host_rules)
    shard_resolver = ShardFileResolver(
        transport, host_rules, cache, ttl_minutes=settings.cache.shard_ttl_minutes
    )
    resolution_cache = RegistryResolutionCache(
        transport,
        host_rules,
        shard_resolver,
        shard_concurrency=settings.registry.shard_concurrency,
    )
    resolver = PackageLookupResolver(
        transport,
        host_rules,
        cache,
        resolution_cache,
        default_registry_url=settings.registry.default_url,
        package_ttl_minutes=settings.cache.package_ttl_minutes,
    )
    return AppState(
        settings=settings,
        http_client=http_client,
        cache=cache,
        transport=transport,
        host_rules=host_rules,
        resolution_cache=resolution_cache,
        datasource=PackagistDatasource(resolver, settings.registry.default_url),
    )


@asynccontextmanager
async def create_app_state(settings: Settings) -> AsyncIterator[AppState]:
    """Open the cache database and HTTP client for the lifetime of the context."""
    db_path = Path(settings.cache.db_path).expanduser()
    db_path.parent.mkdir(parents=True, exist_ok=True)
    async with aiosqlite.connect(db_path) as db:
        cache = Cache(db)
        await cache.init_db()
        await cache.cleanup_if_due(settings.cache.cleanup_interval_hours)
        async with build_http_client(settings.http) as client:
            log.debug("app_state_ready", db_path=str(db_path))
            yield build_app_state(settings, client, cache)
