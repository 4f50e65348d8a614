"""Shared fixtures."""

from __future__ import annotations

import pytest
from fakes import FakeTransport, RecordingCache

from packscout.host_rules import HostRules


@pytest.fixture()
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture()
def recording_cache() -> RecordingCache:
    return RecordingCache()


@pytest.fixture()
def anonymous_rules() -> HostRules:
    return HostRules()
