"""Command-line client for planning-poker rooms.

    python -m poker_room create --tickets-file tickets.txt
    python -m poker_room join <room-id> --name alice [--gamemaster]
    python -m poker_room destroy <room-id> --name alice
    python -m poker_room health

With `join --interactive`, stdin accepts `vote <ticket-id> <points>`, `reveal`, `next` and
`quit`. Room state updates are printed to stdout as JSON, errors to stderr.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import replace
from typing import Any

from dotenv import load_dotenv

from poker_room.channel import LiveChannel
from poker_room.config import ClientConfig
from poker_room.errors import ChannelNotOpenError, RoomRequestError
from poker_room.fsm import ChannelPhase
from poker_room.session import RoomSession

logger = logging.getLogger(__name__)


def _config_from_args(args: argparse.Namespace) -> ClientConfig:
    config = ClientConfig.from_env()
    if args.host:
        config = replace(config, host=args.host)
    if args.insecure:
        config = replace(config, secure=False)
    if args.origin:
        config = replace(config, origin=args.origin)
    return config


def _read_tickets(path: str | None) -> str:
    if path is None or path == "-":
        return sys.stdin.read()
    with open(path, encoding="utf-8") as f:
        return f.read()


async def _stdin_line() -> str:
    return await asyncio.to_thread(sys.stdin.readline)


async def run_command(channel: LiveChannel, line: str) -> bool:
    """Apply one interactive command. Returns False when the user asked to quit."""

    parts = line.split()
    if not parts:
        return True
    cmd, rest = parts[0].casefold(), parts[1:]
    if cmd == "quit":
        return False
    if cmd == "vote" and len(rest) == 2:
        await channel.send_vote(rest[0], int(rest[1]))
    elif cmd == "reveal" and not rest:
        await channel.reveal_votes()
    elif cmd == "next" and not rest:
        await channel.next_ticket()
    else:
        raise ValueError(f"Unknown command: {line.strip()}")
    return True


async def _join(session: RoomSession, args: argparse.Namespace) -> int:
    def _print_state(state: Any) -> None:
        if state is not None:
            sys.stdout.write(json.dumps(state, ensure_ascii=False) + "\n")
            sys.stdout.flush()

    def _print_error(message: str) -> None:
        if message:
            sys.stderr.write(f"[error] {message}\n")
            sys.stderr.flush()

    session.store.room_state.subscribe(_print_state)
    session.store.error_message.subscribe(_print_error)

    channel = await session.join(args.room_id, args.name, args.gamemaster)
    closed = asyncio.create_task(channel.wait_closed())
    try:
        if not args.interactive:
            await closed
            return 1 if channel.phase is ChannelPhase.failed else 0

        sys.stderr.write("Interactive mode: vote <ticket> <points> | reveal | next | quit\n")
        while not closed.done():
            reader = asyncio.create_task(_stdin_line())
            done, _ = await asyncio.wait({reader, closed}, return_when=asyncio.FIRST_COMPLETED)
            if reader not in done:
                reader.cancel()
                break
            line = reader.result()
            if not line:
                # EOF: keep streaming until the channel closes.
                await closed
                break
            try:
                if not await run_command(channel, line):
                    break
            except (ValueError, ChannelNotOpenError) as e:
                sys.stderr.write(f"[error] {e}\n")
    finally:
        await channel.close()
    return 1 if channel.phase is ChannelPhase.failed else 0


async def main(argv: list[str] | None = None) -> int:
    load_dotenv(override=False)

    parser = argparse.ArgumentParser(description="Planning-poker room client")
    parser.add_argument("--host", help="Server host[:port]; defaults to POKER_ROOM_HOST")
    parser.add_argument("--insecure", action="store_true", help="Use http/ws instead of https/wss")
    parser.add_argument("--origin", help="Origin header for the live channel handshake")
    parser.add_argument("--log-level", default="WARNING", help="Python logging level")

    sub = parser.add_subparsers(dest="cmd", required=True)

    p_create = sub.add_parser("create", help="Create a room from ticket ids, one per line")
    p_create.add_argument("--tickets-file", help="File with ticket ids; '-' or omitted reads stdin")

    p_join = sub.add_parser("join", help="Join a room's live channel and stream its state")
    p_join.add_argument("room_id")
    p_join.add_argument("--name", required=True)
    p_join.add_argument("--gamemaster", action="store_true", help="Join as game master")
    p_join.add_argument("--interactive", action="store_true", help="Read vote/reveal/next commands from stdin")

    p_destroy = sub.add_parser("destroy", help="Destroy a room")
    p_destroy.add_argument("room_id")
    p_destroy.add_argument("--name", required=True)

    sub.add_parser("health", help="Check the server health endpoint")

    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper())

    config = _config_from_args(args)
    logger.debug("running %s against %s", args.cmd, config.http_base_url)

    async with RoomSession(config) as session:
        try:
            if args.cmd == "create":
                room_id = await session.create_room(_read_tickets(args.tickets_file))
                print(room_id)
                return 0
            if args.cmd == "destroy":
                await session.rooms.destroy(args.room_id, args.name)
                return 0
            if args.cmd == "health":
                ok = await session.rooms.health()
                print("ok" if ok else "unavailable")
                return 0 if ok else 1
            if args.cmd == "join":
                return await _join(session, args)
        except RoomRequestError as e:
            sys.stderr.write(f"{e}\n")
            return 1

    return 2


def cli() -> None:
    raise SystemExit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
