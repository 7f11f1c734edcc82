"""Room registry: room codes to ordered member sets.

A room exists only while it has members. It is created by the first ``join``
(or ``createRoom``) that targets its code and deleted as soon as the last
member leaves.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from roomrelay.services.connection_registry import ConnectionRegistry

logger = logging.getLogger(__name__)


@dataclass
class Room:
    """A named group of connections."""

    code: str
    # dict keys keep insertion order; values are unused
    members: dict[str, None] = field(default_factory=dict)

    def __contains__(self, identity: object) -> bool:
        return identity in self.members

    def __len__(self) -> int:
        return len(self.members)


class RoomRegistry:
    """Owns room lifecycle and membership."""

    def __init__(self, connections: ConnectionRegistry) -> None:
        self._connections = connections
        self._rooms: dict[str, Room] = {}

    def ensure(self, code: str) -> Room:
        """Return the room for *code*, creating an empty one if needed."""
        room = self._rooms.get(code)
        if room is None:
            room = Room(code=code)
            self._rooms[code] = room
            logger.info("Room %s created", code)
        return room

    def join(self, identity: str, code: str) -> Room:
        """Add *identity* to room *code*, creating the room if it is new."""
        room = self.ensure(code)
        room.members[identity] = None
        return room

    def leave(self, identity: str, code: str) -> None:
        """Remove *identity* from room *code*; delete the room once empty.

        Safe to call when the room or the membership does not exist.
        """
        room = self._rooms.get(code)
        if room is None:
            return
        room.members.pop(identity, None)
        if not room.members:
            del self._rooms[code]
            logger.info("Room %s deleted", code)

    def members_of(self, code: str) -> list[dict]:
        """Snapshot of ``{id, name}`` entries for room *code* in join order.

        Members whose session has already been removed are skipped. An
        unknown room yields an empty list.
        """
        room = self._rooms.get(code)
        if room is None:
            return []
        members: list[dict] = []
        for identity in room.members:
            session = self._connections.get(identity)
            if session is not None:
                members.append(session.as_member())
        return members

    def get(self, code: str) -> Room | None:
        return self._rooms.get(code)

    def __contains__(self, code: object) -> bool:
        return code in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)
