"""Host credential lookup.

Rules come from ``Settings.host_rules``. A rule whose ``match_host`` contains
a scheme matches by URL prefix; otherwise it matches the request hostname or
any subdomain of it. The first matching rule wins.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING
from urllib.parse import urlparse

import httpx

if TYPE_CHECKING:
    from collections.abc import Iterable

    from packscout.config import HostRule


@dataclass(frozen=True)
class HostCredentials:
    username: str | None = None
    password: str | None = None
    token: str | None = None


@dataclass(frozen=True)
class RequestOptions:
    """Per-request auth derived from host credentials."""

    auth: httpx.Auth | None = None
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def is_authenticated(self) -> bool:
        return self.auth is not None or "authorization" in {k.lower() for k in self.headers}


def _matches(rule: HostRule, url: str) -> bool:
    if "://" in rule.match_host:
        return url.startswith(rule.match_host)
    host = (urlparse(url).hostname or "").lower()
    target = rule.match_host.lower()
    return host == target or host.endswith("." + target)


class HostRules:
    """First-match credential lookup implementing HostRulesProtocol."""

    def __init__(self, rules: Iterable[HostRule] = ()) -> None:
        self._rules = list(rules)

    def find(self, host_type: str, url: str) -> HostCredentials:
        for rule in self._rules:
            if rule.host_type is not None and rule.host_type != host_type:
                continue
            if _matches(rule, url):
                return HostCredentials(
                    username=rule.username, password=rule.password, token=rule.token
                )
        return HostCredentials()


def request_options(credentials: HostCredentials) -> RequestOptions:
    """Basic auth needs both username and password; a token becomes a bearer header."""
    auth = None
    headers: dict[str, str] = {}
    if credentials.username and credentials.password:
        auth = httpx.BasicAuth(credentials.username, credentials.password)
    if credentials.token:
        headers["Authorization"] = f"Bearer {credentials.token}"
    return RequestOptions(auth=auth, headers=headers)
