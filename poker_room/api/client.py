from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

import httpx

from poker_room.api.models import CreateRoomRequest
from poker_room.config import ClientConfig
from poker_room.errors import (
    CREATE_ROOM_FAILED,
    RoomCreationError,
    RoomDestructionError,
    RoomTransportError,
)

logger = logging.getLogger(__name__)


CREATE_ROOM_PATH = "/api/create-room"
DESTROY_ROOM_PATH = "/api/destroy-room"
HEALTH_PATH = "/health"


def parse_ticket_lines(tickets: str | Iterable[str]) -> list[str]:
    """Turn a raw ticket block into the ids to submit.

    A string is split on newlines. Entries that are empty once trimmed are
    dropped; the ones kept are sent exactly as typed, in their original order.
    """

    lines = tickets.split("\n") if isinstance(tickets, str) else list(tickets)
    return [t for t in lines if t.strip()]


class RoomLifecycleClient:
    """Request/response side of a room: create it, destroy it.

    Failures are raised to the caller as `RoomRequestError` subclasses; nothing
    is retried.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or ClientConfig.from_env()
        self._http = httpx.AsyncClient(
            base_url=self.config.http_base_url,
            timeout=self.config.timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "RoomLifecycleClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def create(self, tickets: str | Iterable[str]) -> Any:
        """Create a room from a ticket block and return the server's room representation."""

        request = CreateRoomRequest(ticket_ids=parse_ticket_lines(tickets))
        try:
            resp = await self._http.post(CREATE_ROOM_PATH, json=request.model_dump(by_alias=True))
        except httpx.RequestError as e:
            logger.warning("create-room: no response from %s: %r", self.config.http_base_url, e)
            raise RoomTransportError(str(e) or "Network error while creating room") from e

        if not resp.is_success:
            logger.info("create-room: rejected status=%s", resp.status_code)
            raise RoomCreationError(resp.text or CREATE_ROOM_FAILED, status_code=resp.status_code)

        try:
            room = resp.json()
        except ValueError as e:
            logger.warning("create-room: non-JSON body with status=%s", resp.status_code)
            raise RoomCreationError(status_code=resp.status_code) from e

        room_id = room.get("roomId") if isinstance(room, dict) else None
        logger.info("room_created room_id=%s tickets=%d", room_id, len(request.ticket_ids))
        return room

    async def destroy(self, room_id: str, name: str) -> None:
        try:
            resp = await self._http.delete(DESTROY_ROOM_PATH, params={"roomId": room_id, "name": name})
        except httpx.RequestError as e:
            logger.warning("destroy-room: no response for room_id=%s: %r", room_id, e)
            raise RoomDestructionError() from e

        if not resp.is_success:
            logger.info("destroy-room: rejected room_id=%s status=%s", room_id, resp.status_code)
            raise RoomDestructionError()

        logger.info("room_destroyed room_id=%s by=%s", room_id, name)

    async def health(self) -> bool:
        try:
            resp = await self._http.get(HEALTH_PATH)
        except httpx.RequestError as e:
            logger.debug("health: no response: %r", e)
            return False
        return resp.is_success
