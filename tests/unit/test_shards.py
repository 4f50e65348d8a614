"""Unit tests for packscout.shards."""

from __future__ import annotations

from fakes import REGISTRY_URL, FakeTransport, RecordingCache

from packscout.config import HostRule
from packscout.host_rules import HostRules
from packscout.models.registry import FileDescriptor
from packscout.shards import SHARD_CACHE_NAMESPACE, ShardFileResolver

KEY = "p/provider-latest-%hash%.json"
DESCRIPTOR = FileDescriptor(key=KEY, hash="h1")
SHARD_URL = f"{REGISTRY_URL}/p/provider-latest-h1.json"
SHARD_BODY = {"providers": {"acme/tool": {"sha256": "t1"}}}


def _resolver(
    transport: FakeTransport, cache: RecordingCache, rules: HostRules | None = None
) -> ShardFileResolver:
    return ShardFileResolver(transport, rules or HostRules(), cache, ttl_minutes=1440)


class TestAnonymousFetch:
    async def test_miss_fetches_and_writes_through(self, recording_cache: RecordingCache) -> None:
        transport = FakeTransport({SHARD_URL: SHARD_BODY})
        shard = await _resolver(transport, recording_cache).fetch(REGISTRY_URL, DESCRIPTOR)

        assert shard.providers["acme/tool"].sha256 == "t1"
        assert transport.calls == [SHARD_URL]
        assert recording_cache.sets == [(SHARD_CACHE_NAMESPACE, REGISTRY_URL + KEY, 1440)]
        stored = recording_cache.entries[(SHARD_CACHE_NAMESPACE, REGISTRY_URL + KEY)]
        assert stored == {"content": SHARD_BODY, "content_hash": "h1"}

    async def test_same_hash_served_from_cache(self, recording_cache: RecordingCache) -> None:
        transport = FakeTransport({SHARD_URL: SHARD_BODY})
        resolver = _resolver(transport, recording_cache)

        await resolver.fetch(REGISTRY_URL, DESCRIPTOR)
        shard = await resolver.fetch(REGISTRY_URL, DESCRIPTOR)

        assert transport.count(SHARD_URL) == 1
        assert shard.providers["acme/tool"].sha256 == "t1"

    async def test_hash_mismatch_refetches(self, recording_cache: RecordingCache) -> None:
        new_url = f"{REGISTRY_URL}/p/provider-latest-h2.json"
        transport = FakeTransport(
            {SHARD_URL: SHARD_BODY, new_url: {"providers": {"acme/tool": {"sha256": "t2"}}}}
        )
        resolver = _resolver(transport, recording_cache)

        await resolver.fetch(REGISTRY_URL, DESCRIPTOR)
        shard = await resolver.fetch(REGISTRY_URL, FileDescriptor(key=KEY, hash="h2"))

        assert transport.calls == [SHARD_URL, new_url]
        assert shard.providers["acme/tool"].sha256 == "t2"
        stored = recording_cache.entries[(SHARD_CACHE_NAMESPACE, REGISTRY_URL + KEY)]
        assert stored["content_hash"] == "h2"

    async def test_corrupt_cache_record_is_a_miss(self, recording_cache: RecordingCache) -> None:
        recording_cache.entries[(SHARD_CACHE_NAMESPACE, REGISTRY_URL + KEY)] = {"junk": True}
        transport = FakeTransport({SHARD_URL: SHARD_BODY})

        await _resolver(transport, recording_cache).fetch(REGISTRY_URL, DESCRIPTOR)

        assert transport.calls == [SHARD_URL]

    async def test_works_with_sqlite_cache(self, cache) -> None:
        transport = FakeTransport({SHARD_URL: SHARD_BODY})
        resolver = ShardFileResolver(transport, HostRules(), cache)

        await resolver.fetch(REGISTRY_URL, DESCRIPTOR)
        await resolver.fetch(REGISTRY_URL, DESCRIPTOR)

        assert transport.count(SHARD_URL) == 1


class TestAuthenticatedFetch:
    async def test_basic_auth_bypasses_cache(self, recording_cache: RecordingCache) -> None:
        rules = HostRules([HostRule(match_host="repo.example.com", username="u", password="p")])
        transport = FakeTransport({SHARD_URL: SHARD_BODY})
        resolver = _resolver(transport, recording_cache, rules)

        await resolver.fetch(REGISTRY_URL, DESCRIPTOR)
        await resolver.fetch(REGISTRY_URL, DESCRIPTOR)

        assert recording_cache.interactions == 0
        assert transport.count(SHARD_URL) == 2
        _, auth, _ = transport.auth_calls[0]
        assert auth is not None

    async def test_token_bypasses_cache(self, recording_cache: RecordingCache) -> None:
        rules = HostRules([HostRule(match_host="repo.example.com", token="secret")])
        transport = FakeTransport({SHARD_URL: SHARD_BODY})

        await _resolver(transport, recording_cache, rules).fetch(REGISTRY_URL, DESCRIPTOR)

        assert recording_cache.interactions == 0
        _, _, headers = transport.auth_calls[0]
        assert headers == {"Authorization": "Bearer secret"}

    async def test_cached_anonymous_copy_never_served(
        self, recording_cache: RecordingCache
    ) -> None:
        recording_cache.entries[(SHARD_CACHE_NAMESPACE, REGISTRY_URL + KEY)] = {
            "content": {"providers": {}},
            "content_hash": "h1",
        }
        rules = HostRules([HostRule(match_host="repo.example.com", token="secret")])
        transport = FakeTransport({SHARD_URL: SHARD_BODY})

        shard = await _resolver(transport, recording_cache, rules).fetch(REGISTRY_URL, DESCRIPTOR)

        assert "acme/tool" in shard.providers
        assert recording_cache.interactions == 0
