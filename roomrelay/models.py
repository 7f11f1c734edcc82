"""Pydantic models for inbound WebSocket commands.

Every inbound frame is an envelope ``{"type": ..., "payload": {...}}``.  The
``type`` field discriminates between the command models below; see
``roomrelay.services.protocol.decode_command`` for the decode entry point.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ---------------------------------------------------------------------------
# Payload models
# ---------------------------------------------------------------------------


class CreateRoomPayload(BaseModel):
    """Body for ``createRoom``."""

    name: str | None = None


class JoinPayload(BaseModel):
    """Body for ``join``. An empty ``roomId`` makes the command a no-op."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    roomId: str | None = None
    name: str | None = None


class ChatPayload(BaseModel):
    """Body for ``chat``. Numeric text is accepted and stringified."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    text: str | None = None


class TypingPayload(BaseModel):
    """Body for ``typing``."""

    isTyping: bool = False

    @field_validator("isTyping", mode="before")
    @classmethod
    def _truthy(cls, value: Any) -> bool:
        # Any JSON value is accepted; only its truthiness matters.
        return bool(value)


# ---------------------------------------------------------------------------
# Command envelopes
# ---------------------------------------------------------------------------


class CreateRoomCommand(BaseModel):
    type: Literal["createRoom"]
    payload: CreateRoomPayload = Field(default_factory=CreateRoomPayload)


class JoinCommand(BaseModel):
    type: Literal["join"]
    payload: JoinPayload = Field(default_factory=JoinPayload)


class ChatCommand(BaseModel):
    type: Literal["chat"]
    payload: ChatPayload = Field(default_factory=ChatPayload)


class TypingCommand(BaseModel):
    type: Literal["typing"]
    payload: TypingPayload = Field(default_factory=TypingPayload)


Command = Annotated[
    CreateRoomCommand | JoinCommand | ChatCommand | TypingCommand,
    Field(discriminator="type"),
]

COMMAND_TYPES: frozenset[str] = frozenset({"createRoom", "join", "chat", "typing"})
