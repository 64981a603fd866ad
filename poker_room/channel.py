from __future__ import annotations

import asyncio
import logging
import urllib.parse
from collections.abc import Callable
from typing import Any

from websockets.asyncio.client import connect as ws_connect
from websockets.exceptions import ConnectionClosedOK, WebSocketException

from poker_room.api.models import (
    ErrorFrame,
    NextTicketCommand,
    OutboundCommand,
    RevealCommand,
    RoomStateFrame,
    VoteCommand,
    VotePayload,
)
from poker_room.config import ClientConfig
from poker_room.errors import ChannelNotOpenError
from poker_room.frames import decode_frame
from poker_room.fsm import ChannelFSM, ChannelPhase
from poker_room.store import RoomStateStore

logger = logging.getLogger(__name__)


CHANNEL_PATH = "/api/ws"

# Same call shape as `websockets.asyncio.client.connect`: returns an async
# context manager yielding a connection that can be iterated and `send`/`close`d.
ConnectFactory = Callable[..., Any]


class LiveChannel:
    """One live connection for a fixed (room, participant) pair.

    Frames are handled one at a time, in arrival order, by a single task. The
    channel never raises into the event loop: transport and decode problems only
    show up in the store and in `phase`.
    """

    def __init__(
        self,
        *,
        store: RoomStateStore,
        url: str,
        room_id: str,
        name: str,
        is_game_master: bool,
        connect: ConnectFactory,
        connect_kwargs: dict[str, Any] | None = None,
    ) -> None:
        self.room_id = room_id
        self.name = name
        self.is_game_master = is_game_master
        self.url = url
        self.fsm = ChannelFSM()

        self._store = store
        self._connect = connect
        self._connect_kwargs = connect_kwargs or {}
        self._conn: Any = None
        self._task: asyncio.Task[None] | None = None
        self._closing = False

    @property
    def phase(self) -> ChannelPhase:
        return self.fsm.phase

    @property
    def closed(self) -> bool:
        return self._closing or (self._task is not None and self._task.done())

    def start(self) -> None:
        if self._task is not None:
            raise RuntimeError("Channel already started")
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name=f"poker-room-channel:{self.room_id}:{self.name}"
        )

    async def _run(self) -> None:
        logger.info(
            "channel_connecting room_id=%s name=%s gamemaster=%s", self.room_id, self.name, self.is_game_master
        )
        try:
            async with self._connect(self.url, **self._connect_kwargs) as conn:
                self._conn = conn
                logger.info("channel_open room_id=%s name=%s", self.room_id, self.name)
                async for raw in conn:
                    self.handle_frame(raw)
        except ConnectionClosedOK:
            pass
        except (OSError, WebSocketException) as e:
            if self._closing:
                logger.debug("channel error while closing room_id=%s: %r", self.room_id, e)
            else:
                self.handle_transport_error(e)
        finally:
            self._conn = None
            logger.info("channel_closed room_id=%s name=%s phase=%s", self.room_id, self.name, self.phase)

    def handle_frame(self, raw: str | bytes) -> None:
        if self._closing:
            return

        frame = decode_frame(raw)
        if isinstance(frame, RoomStateFrame):
            logger.debug("room_state room_id=%s", self.room_id)
            self.fsm.room_state_received()
            self._store.apply_room_state(frame.payload)
        elif isinstance(frame, ErrorFrame):
            logger.info("server_error room_id=%s error=%s", self.room_id, frame.error)
            self.fsm.server_error_received()
            self._store.apply_error(frame.error)
        else:
            logger.warning("frame_rejected room_id=%s reason=%s", self.room_id, frame.reason)
            self.fsm.frame_rejected()
            self._store.apply_decode_failure()

    def handle_transport_error(self, exc: BaseException | None = None) -> None:
        logger.warning("channel_error room_id=%s name=%s: %r", self.room_id, self.name, exc)
        self.fsm.transport_failed()
        self._store.apply_connection_failure()

    async def close(self) -> None:
        """Stop processing frames and release the connection. Safe to call twice."""

        if not self._closing:
            self._closing = True
            conn = self._conn
            if conn is not None:
                # Ends the receive loop once the closing handshake completes.
                try:
                    await conn.close()
                except (OSError, WebSocketException) as e:
                    logger.debug("close failed room_id=%s: %r", self.room_id, e)
                    if self._task is not None:
                        self._task.cancel()
            elif self._task is not None and not self._task.done():
                self._task.cancel()
        await self.wait_closed()

    async def wait_closed(self) -> None:
        if self._task is not None:
            await asyncio.wait({self._task})

    async def send_vote(self, ticket_id: str, vote: int) -> None:
        await self._send(VoteCommand(payload=VotePayload(ticket_id=ticket_id, vote=vote)))

    async def reveal_votes(self) -> None:
        await self._send(RevealCommand())

    async def next_ticket(self) -> None:
        await self._send(NextTicketCommand())

    async def _send(self, command: OutboundCommand) -> None:
        conn = self._conn
        if conn is None or self._closing:
            raise ChannelNotOpenError(f"Channel for room {self.room_id} is not open")
        await conn.send(command.model_dump_json(by_alias=True))


class LiveChannelClient:
    """Opens live channels that write into one `RoomStateStore`."""

    def __init__(
        self,
        store: RoomStateStore,
        config: ClientConfig | None = None,
        *,
        connect: ConnectFactory | None = None,
    ) -> None:
        self.store = store
        self.config = config or ClientConfig.from_env()
        self._connect = connect or ws_connect

    def channel_url(self, room_id: str, name: str, is_game_master: bool) -> str:
        query = urllib.parse.urlencode(
            {"roomId": room_id, "name": name, "gamemaster": "true" if is_game_master else "false"}
        )
        return f"{self.config.ws_base_url}{CHANNEL_PATH}?{query}"

    def connect(self, room_id: str, name: str, is_game_master: bool = False) -> LiveChannel:
        """Start a channel and return its handle without waiting for the connection.

        Must be called from a running event loop. The caller owns the handle and
        is responsible for `close()`.
        """

        room_id = str(room_id)
        if not room_id:
            raise ValueError("room_id is required")
        if not name:
            raise ValueError("name is required")

        kwargs: dict[str, Any] = {"open_timeout": self.config.timeout}
        if self.config.origin:
            kwargs["additional_headers"] = [("Origin", self.config.origin)]

        channel = LiveChannel(
            store=self.store,
            url=self.channel_url(room_id, name, is_game_master),
            room_id=room_id,
            name=name,
            is_game_master=is_game_master,
            connect=self._connect,
            connect_kwargs=kwargs,
        )
        channel.start()
        return channel
