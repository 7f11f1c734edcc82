"""Protocol dispatcher.

Owns the relay state (connection registry, room registry, broadcaster) and
applies connect, message and disconnect events to it. One instance is created
in the application lifespan and stored on ``app.state.dispatcher``.

Every public method is synchronous and never suspends, so on the event loop
each event runs to completion before the next one starts. That keeps the
leave/join/presence sequences atomic with respect to other connections.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from roomrelay.config import Settings
from roomrelay.exceptions import ProtocolError
from roomrelay.models import ChatCommand, Command, CreateRoomCommand, JoinCommand, TypingCommand
from roomrelay.services import ws_messages
from roomrelay.services.broadcaster import Broadcaster
from roomrelay.services.connection_registry import DEFAULT_NAME, ConnectionRegistry, Session
from roomrelay.services.identifiers import IdentifierSource
from roomrelay.services.protocol import decode_command
from roomrelay.services.room_registry import RoomRegistry

if TYPE_CHECKING:
    from roomrelay.transport import Channel

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class Dispatcher:
    """Routes decoded commands to the registries and the broadcaster."""

    def __init__(
        self,
        *,
        ids: IdentifierSource | None = None,
        max_name_length: int = 24,
        max_chat_length: int = 2000,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self.ids = ids or IdentifierSource()
        self.connections = ConnectionRegistry(self.ids, max_name_length=max_name_length)
        self.rooms = RoomRegistry(self.connections)
        self.broadcaster = Broadcaster(self.connections, self.rooms)
        self._max_chat_length = max_chat_length
        self._clock = clock
        self._handlers: dict[str, Callable[[Session, Command], None]] = {
            "createRoom": self._create_room,
            "join": self._join,
            "chat": self._chat,
            "typing": self._typing,
        }

    @classmethod
    def from_settings(cls, settings: Settings) -> Dispatcher:
        return cls(
            ids=IdentifierSource.from_settings(settings),
            max_name_length=settings.max_name_length,
            max_chat_length=settings.max_chat_length,
        )

    # ------------------------------------------------------------------
    # Transport events
    # ------------------------------------------------------------------

    def connect(self, channel: Channel) -> str:
        """Register *channel*, greet it with ``welcome`` and return its identity."""
        identity = self.connections.register(channel)
        self.broadcaster.send(identity, ws_messages.welcome(connection_id=identity))
        return identity

    def handle_message(self, identity: str, raw: str | bytes) -> None:
        """Decode one inbound frame from *identity* and apply it."""
        session = self.connections.get(identity)
        if session is None:
            return

        try:
            command = decode_command(raw)
        except ProtocolError as exc:
            logger.debug("Rejected frame from %s: %s", identity, exc.message)
            self.broadcaster.send(identity, ws_messages.error(message=exc.message))
            return

        self._handlers[command.type](session, command)

    def disconnect(self, identity: str) -> None:
        """Tear down *identity*: leave its room (announcing presence), then forget it."""
        session = self.connections.get(identity)
        if session is None:
            return
        self._leave_current(session)
        self.connections.unregister(identity)

    # ------------------------------------------------------------------
    # Command handlers
    # ------------------------------------------------------------------

    def _create_room(self, session: Session, command: CreateRoomCommand) -> None:
        self.connections.set_name(session.identity, command.payload.name)
        self._leave_current(session)

        room_code = self.ids.room_code()
        while room_code in self.rooms:
            room_code = self.ids.room_code()

        self._enter(session, room_code)
        self.broadcaster.send(
            session.identity,
            ws_messages.room_created(room_id=room_code, members=self.rooms.members_of(room_code)),
        )
        self.broadcaster.announce_presence(room_code)

    def _join(self, session: Session, command: JoinCommand) -> None:
        room_code = (command.payload.roomId or "").strip()
        if not room_code:
            return

        self._leave_current(session)
        self.connections.set_name(session.identity, command.payload.name, fallback=DEFAULT_NAME)

        self._enter(session, room_code)
        self.broadcaster.send(
            session.identity,
            ws_messages.joined(room_id=room_code, members=self.rooms.members_of(room_code)),
        )
        self.broadcaster.announce_presence(room_code)

    def _chat(self, session: Session, command: ChatCommand) -> None:
        if session.current_room is None:
            return
        text = (command.payload.text or "").strip()
        if not text:
            return

        message = ws_messages.chat(
            message_id=self.ids.message_id(),
            room_id=session.current_room,
            sender=session.as_member(),
            text=text[: self._max_chat_length],
            ts=self._clock(),
        )
        self.broadcaster.broadcast(session.current_room, message)

    def _typing(self, session: Session, command: TypingCommand) -> None:
        if session.current_room is None:
            return
        message = ws_messages.typing(
            sender=session.as_member(),
            is_typing=command.payload.isTyping,
        )
        self.broadcaster.broadcast(session.current_room, message, exclude=session.identity)

    # ------------------------------------------------------------------
    # Membership helpers
    # ------------------------------------------------------------------

    def _enter(self, session: Session, room_code: str) -> None:
        self.rooms.join(session.identity, room_code)
        session.current_room = room_code
        logger.info("Connection %s joined room %s", session.identity, room_code)

    def _leave_current(self, session: Session) -> None:
        room_code = session.current_room
        if room_code is None:
            return
        self.rooms.leave(session.identity, room_code)
        session.current_room = None
        logger.info("Connection %s left room %s", session.identity, room_code)
        # No-op if the room was just deleted for being empty.
        self.broadcaster.announce_presence(room_code)
