from __future__ import annotations


CREATE_ROOM_FAILED = "Failed to create room"
DESTROY_ROOM_FAILED = "Failed to destroy room"


class RoomRequestError(Exception):
    """A room lifecycle request did not complete successfully."""


class RoomCreationError(RoomRequestError):
    def __init__(self, message: str = CREATE_ROOM_FAILED, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RoomDestructionError(RoomRequestError):
    # Never carries the server's detail text.
    def __init__(self) -> None:
        super().__init__(DESTROY_ROOM_FAILED)


class RoomTransportError(RoomRequestError):
    """No response was received (DNS, refused connection, timeout...)."""


class ChannelNotOpenError(RuntimeError):
    pass
