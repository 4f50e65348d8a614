"""Hash-addressed shard fetching with auth-aware persistent caching.

Anonymous fetches go through the persistent cache, keyed by registry URL plus
the shard key template and validated against the requested hash. Requests
carrying credentials never read or write the cache: a cached private response
keyed only by URL would be served to other callers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from pydantic import ValidationError

from packscout.host_rules import request_options
from packscout.models.cache import ShardCacheRecord
from packscout.models.registry import ShardFile
from packscout.root import HOST_TYPE
from packscout.templates import expand_template

if TYPE_CHECKING:
    from packscout.models.registry import FileDescriptor
    from packscout.protocols import CacheProtocol, HostRulesProtocol, TransportProtocol

log = structlog.get_logger()

SHARD_CACHE_NAMESPACE = "datasource-packagist-files"


class ShardFileResolver:
    def __init__(
        self,
        transport: TransportProtocol,
        host_rules: HostRulesProtocol,
        cache: CacheProtocol,
        ttl_minutes: int = 1440,
    ) -> None:
        self._transport = transport
        self._host_rules = host_rules
        self._cache = cache
        self._ttl_minutes = ttl_minutes

    async def _cached_record(self, cache_key: str) -> ShardCacheRecord | None:
        cached = await self._cache.get(SHARD_CACHE_NAMESPACE, cache_key)
        if cached is None:
            return None
        try:
            return ShardCacheRecord.model_validate(cached)
        except ValidationError:
            log.warning("shard_cache_record_invalid", key=cache_key)
            return None

    async def fetch(self, registry_url: str, descriptor: FileDescriptor) -> ShardFile:
        """Return the shard named by ``descriptor``.

        Transport errors propagate; the caller decides what a failed shard
        means for the registry as a whole.
        """
        file_name = expand_template(descriptor.key, hash=descriptor.hash)
        url = f"{registry_url.rstrip('/')}/{file_name}"
        options = request_options(self._host_rules.find(HOST_TYPE, registry_url))

        if options.is_authenticated:
            response = await self._transport.get_json(
                url, auth=options.auth, headers=options.headers or None
            )
            return ShardFile.model_validate(response.body)

        cache_key = registry_url + descriptor.key
        record = await self._cached_record(cache_key)
        if record is not None:
            if record.content_hash == descriptor.hash:
                log.debug("shard_cache_hit", registry_url=registry_url, key=descriptor.key)
                return ShardFile.model_validate(record.content)
            log.debug(
                "shard_cache_stale",
                registry_url=registry_url,
                key=descriptor.key,
                cached_hash=record.content_hash,
                requested_hash=descriptor.hash,
            )

        response = await self._transport.get_json(url)
        shard = ShardFile.model_validate(response.body)
        record = ShardCacheRecord(content=response.body, content_hash=descriptor.hash)
        await self._cache.set(
            SHARD_CACHE_NAMESPACE, cache_key, record.model_dump(), self._ttl_minutes
        )
        return shard
