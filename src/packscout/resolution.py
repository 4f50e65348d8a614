"""Per-registry assembly with in-flight de-duplication.

The first ``resolve`` for a registry URL installs a PENDING entry and starts a
single assembly task: root fetch, bounded provider-shard fan-out, sequential
includes shards. Every other caller for that URL awaits the same task, so the
root document and its shards are fetched at most once per process. Entries
reach RESOLVED or FAILED exactly once and are never refreshed.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from functools import partial
from typing import TYPE_CHECKING

import structlog

from packscout.errors import TransportError
from packscout.models.cache import ResolutionState
from packscout.releases import extract_releases
from packscout.root import fetch_registry_root
from packscout.scheduler import DEFAULT_CONCURRENCY, gather_bounded

if TYPE_CHECKING:
    from packscout.models.registry import RegistryView
    from packscout.models.release import ReleaseResult
    from packscout.protocols import HostRulesProtocol, TransportProtocol
    from packscout.shards import ShardFileResolver

log = structlog.get_logger()


@dataclass
class RegistryResolutionCacheEntry:
    task: asyncio.Task[RegistryView | None] = field(repr=False)
    state: ResolutionState = ResolutionState.PENDING
    view: RegistryView | None = None


class RegistryResolutionCache:
    """Process-wide map of registry URL → assembled ``RegistryView``."""

    def __init__(
        self,
        transport: TransportProtocol,
        host_rules: HostRulesProtocol,
        shard_resolver: ShardFileResolver,
        shard_concurrency: int = DEFAULT_CONCURRENCY,
    ) -> None:
        self._transport = transport
        self._host_rules = host_rules
        self._shards = shard_resolver
        self._shard_concurrency = shard_concurrency
        self._entries: dict[str, RegistryResolutionCacheEntry] = {}

    def state(self, registry_url: str) -> ResolutionState | None:
        entry = self._entries.get(registry_url)
        return entry.state if entry else None

    async def resolve(self, registry_url: str) -> RegistryView | None:
        entry = self._entries.get(registry_url)
        if entry is None:
            # Check-and-install happens without yielding to the event loop, so the
            # task cannot start before its entry is in place.
            task = asyncio.get_running_loop().create_task(self._run(registry_url))
            entry = RegistryResolutionCacheEntry(task=task)
            self._entries[registry_url] = entry
        if entry.state is not ResolutionState.PENDING:
            return entry.view
        # Shielded so a cancelled caller leaves the assembly running for the others.
        return await asyncio.shield(entry.task)

    async def _run(self, registry_url: str) -> RegistryView | None:
        entry = self._entries[registry_url]
        try:
            view = await self.assemble(registry_url)
        except asyncio.CancelledError:
            entry.state = ResolutionState.FAILED
            raise
        except TransportError as exc:
            log.warning(
                "registry_shard_download_error",
                registry_url=registry_url,
                url=exc.url,
                code=exc.transport_code,
                status_code=exc.status_code,
            )
            view = None
        except Exception:
            log.warning("registry_assembly_error", registry_url=registry_url, exc_info=True)
            view = None

        entry.view = view
        entry.state = ResolutionState.RESOLVED if view is not None else ResolutionState.FAILED
        log.debug("registry_resolution_complete", registry_url=registry_url, state=entry.state)
        return view

    async def assemble(self, registry_url: str) -> RegistryView | None:
        root = await fetch_registry_root(self._transport, self._host_rules, registry_url)
        if root is None:
            return None

        provider_hashes = dict(root.provider_package_hashes)
        if root.shard_file_descriptors:
            shards = await gather_bounded(
                [partial(self._shards.fetch, registry_url, d) for d in root.shard_file_descriptors],
                limit=self._shard_concurrency,
            )
            # Input order, so a name listed in several shards keeps the last one.
            for shard in shards:
                for name, ref in shard.providers.items():
                    provider_hashes[name] = ref.sha256

        includes_packages: dict[str, ReleaseResult] = {}
        for descriptor in root.includes_file_descriptors:
            shard = await self._shards.fetch(registry_url, descriptor)
            for name, versions in (shard.packages or {}).items():
                includes_packages[name] = extract_releases(versions, name=name)

        return root.model_copy(
            update={
                "provider_package_hashes": provider_hashes,
                "includes_packages": includes_packages,
            }
        )
