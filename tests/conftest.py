from __future__ import annotations

from collections.abc import Generator

import fakeredis
import httpx
import pytest

from poker_room.config import ClientConfig
from poker_room.store import RoomStateStore
from tests.contract_server import app, get_redis
from tests.fakes import FakeConnector


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's POKER_ROOM_* settings from leaking into tests."""

    for var in ("POKER_ROOM_HOST", "POKER_ROOM_SECURE", "POKER_ROOM_ORIGIN", "POKER_ROOM_TIMEOUT"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture()
def config() -> ClientConfig:
    return ClientConfig(host="testserver", secure=False, timeout=5.0)


@pytest.fixture()
def store() -> RoomStateStore:
    return RoomStateStore()


@pytest.fixture()
def contract_server() -> Generator[tuple[httpx.ASGITransport, fakeredis.FakeRedis], None, None]:
    """ASGI transport into the contract server, backed by fakeredis."""

    r = fakeredis.FakeRedis(decode_responses=True)

    def _override() -> Generator[fakeredis.FakeRedis, None, None]:
        yield r

    app.dependency_overrides[get_redis] = _override
    yield httpx.ASGITransport(app=app), r
    app.dependency_overrides.clear()


@pytest.fixture()
def connector() -> FakeConnector:
    return FakeConnector()

