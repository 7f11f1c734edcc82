"""Presence and broadcast engine.

Fans a message out to the members of a room. Each message is serialized once
per fan-out and handed to every ready member channel. A failing channel is
logged and skipped; it never stops delivery to the others.
"""

from __future__ import annotations

import json
import logging

from roomrelay.services import ws_messages
from roomrelay.services.connection_registry import ConnectionRegistry
from roomrelay.services.room_registry import RoomRegistry

logger = logging.getLogger(__name__)


def _encode(message: dict) -> str:
    return json.dumps(message, separators=(",", ":"), ensure_ascii=False)


class Broadcaster:
    """Delivers envelopes to single connections or whole rooms."""

    def __init__(self, connections: ConnectionRegistry, rooms: RoomRegistry) -> None:
        self._connections = connections
        self._rooms = rooms

    def send(self, identity: str, message: dict) -> bool:
        """Send *message* to one connection. Returns ``True`` if it was queued."""
        return self._deliver(identity, _encode(message))

    def broadcast(self, room_code: str, message: dict, exclude: str | None = None) -> int:
        """Send *message* to every ready member of *room_code* except *exclude*.

        Silently does nothing when the room does not exist. Returns the number
        of connections the message was queued for.
        """
        room = self._rooms.get(room_code)
        if room is None:
            return 0

        text = _encode(message)
        delivered = 0
        # Snapshot of the member set
        for identity in list(room.members):
            if identity == exclude:
                continue
            if self._deliver(identity, text):
                delivered += 1
        return delivered

    def announce_presence(self, room_code: str) -> int:
        """Broadcast the current member list of *room_code* to the whole room."""
        members = self._rooms.members_of(room_code)
        return self.broadcast(room_code, ws_messages.presence(members=members))

    def _deliver(self, identity: str, text: str) -> bool:
        channel = self._connections.channel(identity)
        if channel is None or not channel.is_ready:
            return False
        try:
            channel.send(text)
        except Exception as exc:
            logger.warning("Send to %s failed: %s", identity, exc)
            return False
        return True
