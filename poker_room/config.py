from __future__ import annotations

import os
from dataclasses import dataclass


_FALSY = {"0", "false", "no", "off"}


def get_room_host() -> str:
    return os.environ.get("POKER_ROOM_HOST", "localhost:8080")


def get_secure() -> bool:
    return os.environ.get("POKER_ROOM_SECURE", "1").strip().casefold() not in _FALSY


def get_origin() -> str | None:
    # The server only upgrades sockets whose Origin matches the site it serves.
    return os.environ.get("POKER_ROOM_ORIGIN") or None


def get_timeout() -> float:
    return float(os.environ.get("POKER_ROOM_TIMEOUT", "10"))


@dataclass(frozen=True, slots=True)
class ClientConfig:
    host: str = "localhost:8080"
    secure: bool = True
    origin: str | None = None
    timeout: float = 10.0

    @classmethod
    def from_env(cls) -> "ClientConfig":
        return cls(host=get_room_host(), secure=get_secure(), origin=get_origin(), timeout=get_timeout())

    @property
    def http_base_url(self) -> str:
        return f"{'https' if self.secure else 'http'}://{self.host}"

    @property
    def ws_base_url(self) -> str:
        return f"{'wss' if self.secure else 'ws'}://{self.host}"
