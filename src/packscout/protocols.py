"""Structural interfaces for the collaborators the resolution engine consumes.

Concrete implementations live in ``cache``, ``transport`` and ``host_rules``;
tests substitute lightweight fakes that satisfy the same shapes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    import httpx

    from packscout.host_rules import HostCredentials
    from packscout.transport import JsonResponse


class CacheProtocol(Protocol):
    async def get(self, namespace: str, key: str) -> Any | None: ...

    async def set(self, namespace: str, key: str, value: Any, ttl_minutes: int) -> None: ...


class TransportProtocol(Protocol):
    async def get_json(
        self,
        url: str,
        *,
        auth: httpx.Auth | None = None,
        headers: dict[str, str] | None = None,
    ) -> JsonResponse: ...


class HostRulesProtocol(Protocol):
    def find(self, host_type: str, url: str) -> HostCredentials: ...
