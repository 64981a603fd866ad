"""Test doubles for the live channel transport."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any


_CLOSE = object()


class FakeConnection:
    """Stands in for a websockets client connection.

    Tests push frames (or exceptions) with `feed`; `finish` ends the stream the
    way a clean close from the server would.
    """

    def __init__(self) -> None:
        self.inbox: asyncio.Queue[Any] = asyncio.Queue()
        self.sent: list[str] = []
        self.closed = False

    async def __aenter__(self) -> "FakeConnection":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.closed = True

    def __aiter__(self) -> "FakeConnection":
        return self

    async def __anext__(self) -> Any:
        item = await self.inbox.get()
        if item is _CLOSE:
            raise StopAsyncIteration
        if isinstance(item, BaseException):
            raise item
        return item

    def feed(self, *items: Any) -> None:
        for item in items:
            self.inbox.put_nowait(item)

    def finish(self) -> None:
        self.inbox.put_nowait(_CLOSE)

    async def send(self, data: str) -> None:
        self.sent.append(data)

    async def close(self) -> None:
        self.closed = True
        self.finish()


class _FailingConnect:
    def __init__(self, error: BaseException) -> None:
        self.error = error

    async def __aenter__(self) -> Any:
        raise self.error

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return None


class FakeConnector:
    """Callable with the same shape as `websockets.asyncio.client.connect`."""

    def __init__(self, error: BaseException | None = None) -> None:
        self.error = error
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.connections: list[FakeConnection] = []

    def __call__(self, url: str, **kwargs: Any) -> Any:
        self.calls.append((url, kwargs))
        if self.error is not None:
            return _FailingConnect(self.error)
        conn = FakeConnection()
        self.connections.append(conn)
        return conn

    @property
    def last(self) -> FakeConnection:
        return self.connections[-1]


async def wait_until(predicate: Callable[[], bool], *, attempts: int = 200) -> None:
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")
