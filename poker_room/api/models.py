from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class CreateRoomRequest(BaseModel):
    ticket_ids: list[str] = Field(..., alias="ticketIds")

    model_config = ConfigDict(populate_by_name=True)


class CreateRoomResponse(BaseModel):
    room_id: str = Field(..., alias="roomId")

    # Whatever else the server sends is kept on the parsed body.
    model_config = ConfigDict(populate_by_name=True, extra="allow")


# Inbound frames (server -> client).


class RoomStateFrame(BaseModel):
    type: Literal["roomState"]
    # Opaque to the client; `null` is still a valid payload.
    payload: Any


class ErrorFrame(BaseModel):
    error: str


# Outbound commands (client -> server). Only sent when the caller asks for them.


class VotePayload(BaseModel):
    ticket_id: str = Field(..., alias="ticketId")
    vote: int

    model_config = ConfigDict(populate_by_name=True)


class VoteCommand(BaseModel):
    type: Literal["vote"] = "vote"
    payload: VotePayload


class RevealCommand(BaseModel):
    type: Literal["reveal"] = "reveal"


class NextTicketCommand(BaseModel):
    type: Literal["next"] = "next"


OutboundCommand = VoteCommand | RevealCommand | NextTicketCommand


# Typed read-only view of the server's room payload.


class TicketView(BaseModel):
    id: str = Field(..., alias="ID")
    votes: dict[str, int] = Field(default_factory=dict, alias="Votes")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @field_validator("votes", mode="before")
    @classmethod
    def _null_votes(cls, v: Any) -> Any:
        return {} if v is None else v


class RoomView(BaseModel):
    id: str = Field(..., alias="ID")
    tickets: list[TicketView] = Field(default_factory=list, alias="Tickets")
    users: dict[str, str] = Field(default_factory=dict, alias="Users")
    game_master: str = Field("", alias="GameMaster")
    current_ticket: int = Field(0, alias="CurrentTicket")
    votes_revealed: bool = Field(False, alias="VotesRevealed")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    # Go encodes empty maps/slices as null.
    @field_validator("tickets", "users", mode="before")
    @classmethod
    def _null_collections(cls, v: Any, info: ValidationInfo) -> Any:
        if v is None:
            return [] if info.field_name == "tickets" else {}
        return v

    @property
    def current(self) -> TicketView | None:
        if 0 <= self.current_ticket < len(self.tickets):
            return self.tickets[self.current_ticket]
        return None

    @property
    def participants(self) -> list[str]:
        return sorted(self.users)

    def is_game_master(self, name: str) -> bool:
        return bool(self.game_master) and self.game_master == name
