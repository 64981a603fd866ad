from __future__ import annotations

import logging
from collections.abc import Iterable

import httpx
from pydantic import ValidationError

from poker_room.api.client import RoomLifecycleClient
from poker_room.api.models import CreateRoomResponse, RoomView
from poker_room.channel import ConnectFactory, LiveChannel, LiveChannelClient
from poker_room.config import ClientConfig
from poker_room.errors import RoomCreationError
from poker_room.store import RoomStateStore

logger = logging.getLogger(__name__)


class RoomSession:
    """Everything one participant needs for one room.

    Owns its own store, so separate sessions (or tests) never share state. At
    most one live channel is active per session.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        store: RoomStateStore | None = None,
        http_transport: httpx.AsyncBaseTransport | None = None,
        connect: ConnectFactory | None = None,
    ) -> None:
        self.config = config or ClientConfig.from_env()
        self.store = store or RoomStateStore()
        self.rooms = RoomLifecycleClient(self.config, transport=http_transport)
        self.channels = LiveChannelClient(self.store, self.config, connect=connect)
        self.channel: LiveChannel | None = None

    async def __aenter__(self) -> "RoomSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def create_room(self, tickets: str | Iterable[str]) -> str:
        body = await self.rooms.create(tickets)
        try:
            return CreateRoomResponse.model_validate(body).room_id
        except ValidationError as e:
            raise RoomCreationError("Server response did not include a room id") from e

    async def join(self, room_id: str, name: str, is_game_master: bool = False) -> LiveChannel:
        if self.channel is not None:
            await self.channel.close()
        self.channel = self.channels.connect(room_id, name, is_game_master)
        return self.channel

    async def leave(self) -> None:
        if self.channel is not None:
            await self.channel.close()

    async def destroy_room(self) -> None:
        if self.channel is None:
            raise RuntimeError("No room joined")
        await self.rooms.destroy(self.channel.room_id, self.channel.name)
        await self.channel.close()

    def room_view(self) -> RoomView | None:
        payload = self.store.room_state.get()
        if payload is None:
            return None
        try:
            return RoomView.model_validate(payload)
        except ValidationError as e:
            logger.debug("room payload does not match the known shape: %s", e)
            return None

    async def aclose(self) -> None:
        await self.leave()
        await self.rooms.aclose()
