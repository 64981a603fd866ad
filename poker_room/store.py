from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Subscriber = Callable[[T], None]
Unsubscribe = Callable[[], None]


CONNECTION_ERROR_MESSAGE = "Connection error occurred"
DECODE_ERROR_MESSAGE = "Error processing message from server"


_PLAIN_TYPES = (bool, int, float, str, bytes, type(None))


def _differs(old: Any, new: Any) -> bool:
    if isinstance(new, _PLAIN_TYPES) and type(old) is type(new):
        return old != new
    return True


class Observable(Generic[T]):
    """A value holder with change notification.

    `subscribe` calls the subscriber right away with the current value, then on
    every change. It returns a function that removes the subscription.

    Setting a plain value (bool, number, string, None) equal to the current one
    notifies nobody. Containers and other objects always notify, since they may
    have been mutated in place.
    """

    def __init__(self, initial: T) -> None:
        self._value = initial
        self._subscribers: list[Subscriber[T]] = []

    def get(self) -> T:
        return self._value

    def set(self, value: T) -> None:
        if self._set_silently(value):
            self._notify()

    def subscribe(self, subscriber: Subscriber[T]) -> Unsubscribe:
        self._subscribers.append(subscriber)
        subscriber(self._value)

        def _unsubscribe() -> None:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

        return _unsubscribe

    def _set_silently(self, value: T) -> bool:
        changed = _differs(self._value, value)
        self._value = value
        return changed

    def _notify(self) -> None:
        # Copy so a subscriber may unsubscribe while being notified.
        for subscriber in list(self._subscribers):
            try:
                subscriber(self._value)
            except Exception:
                logger.exception("store subscriber failed")


@dataclass(frozen=True, slots=True)
class RoomSnapshot:
    room_state: Any
    connected: bool
    error_message: str


class RoomStateStore:
    """Latest known room state, connectivity flag and last error message.

    Exactly one writer (the active live channel) is expected. Readers observe
    through `room_state`, `connected` and `error_message` and must not set them.
    """

    def __init__(self) -> None:
        self.room_state: Observable[Any] = Observable(None)
        self.connected: Observable[bool] = Observable(False)
        self.error_message: Observable[str] = Observable("")

    def snapshot(self) -> RoomSnapshot:
        return RoomSnapshot(
            room_state=self.room_state.get(),
            connected=self.connected.get(),
            error_message=self.error_message.get(),
        )

    def apply_room_state(self, payload: Any) -> None:
        # All three values land before any subscriber hears about them.
        changed = [
            holder
            for holder, value in ((self.room_state, payload), (self.connected, True), (self.error_message, ""))
            if holder._set_silently(value)
        ]
        for holder in changed:
            holder._notify()

    def apply_error(self, message: str) -> None:
        self.error_message.set(message)

    def apply_decode_failure(self) -> None:
        self.error_message.set(DECODE_ERROR_MESSAGE)

    def apply_connection_failure(self) -> None:
        changed = [
            holder
            for holder, value in ((self.error_message, CONNECTION_ERROR_MESSAGE), (self.connected, False))
            if holder._set_silently(value)
        ]
        for holder in changed:
            holder._notify()
