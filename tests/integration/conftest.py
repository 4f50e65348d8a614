"""Integration test fixtures.

Provides a fully wired AppState with in-memory SQLite and a real httpx client;
tests mock the network with respx.
"""

from __future__ import annotations

import os

import aiosqlite
import httpx
import pytest

from packscout.cache import Cache
from packscout.config import Settings
from packscout.state import AppState, build_app_state


@pytest.fixture()
def settings() -> Settings:
    return Settings()


@pytest.fixture()
async def db():
    async with aiosqlite.connect(":memory:") as connection:
        yield connection


@pytest.fixture()
async def app_state(settings: Settings, db: aiosqlite.Connection) -> AppState:
    """Full AppState wired for integration tests."""
    cache = Cache(db)
    await cache.init_db()
    async with httpx.AsyncClient(follow_redirects=True) as client:
        yield build_app_state(settings, client, cache)


@pytest.fixture()
def subprocess_env(tmp_path) -> dict[str, str]:
    """Environment for running ``python -m packscout`` against a throwaway cache."""
    env = os.environ.copy()
    env["PACKSCOUT__CACHE__DB_PATH"] = str(tmp_path / "cache.db")
    return env
