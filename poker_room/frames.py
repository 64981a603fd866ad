from __future__ import annotations

import json
from dataclasses import dataclass

from pydantic import ValidationError

from poker_room.api.models import ErrorFrame, RoomStateFrame


@dataclass(frozen=True, slots=True)
class DecodeFailure:
    reason: str


InboundFrame = RoomStateFrame | ErrorFrame | DecodeFailure


def decode_frame(raw: str | bytes) -> InboundFrame:
    """Classify one inbound frame body.

    Recognized shapes are `{"type": "roomState", "payload": ...}` and
    `{"error": "<text>"}`. Everything else, including bodies that are not JSON,
    comes back as a `DecodeFailure` instead of raising.
    """

    try:
        message = json.loads(raw)
    except ValueError as e:
        # Covers JSONDecodeError and undecodable bytes.
        return DecodeFailure(reason=f"invalid JSON: {e}")

    if not isinstance(message, dict):
        return DecodeFailure(reason=f"expected a JSON object, got {type(message).__name__}")

    try:
        if message.get("type") == "roomState":
            return RoomStateFrame.model_validate(message)
        if "error" in message:
            return ErrorFrame.model_validate(message)
    except ValidationError as e:
        return DecodeFailure(reason=f"malformed frame: {e.errors()[0]['msg']}")

    return DecodeFailure(reason="unrecognized frame shape")
