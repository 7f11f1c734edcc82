"""Connection registry: per-connection session state.

Maps each connection handle (its identity token) to a :class:`Session` and to
the transport :class:`~roomrelay.transport.Channel` used to reach it. The
registry never holds the WebSocket object itself as a key, so a connection
removed mid-broadcast simply stops resolving.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from roomrelay.services.identifiers import IdentifierSource

if TYPE_CHECKING:
    from roomrelay.transport import Channel

logger = logging.getLogger(__name__)

DEFAULT_NAME: str = "Anonymous"


@dataclass
class Session:
    """Mutable state of one connected client."""

    identity: str
    display_name: str = DEFAULT_NAME
    current_room: str | None = None

    def as_member(self) -> dict:
        return {"id": self.identity, "name": self.display_name}


class ConnectionRegistry:
    """Tracks sessions and channels for every live connection."""

    def __init__(self, ids: IdentifierSource, *, max_name_length: int = 24) -> None:
        self._ids = ids
        self._max_name_length = max_name_length
        self._sessions: dict[str, Session] = {}
        self._channels: dict[str, Channel] = {}

    def register(self, channel: Channel) -> str:
        """Create a session for *channel* and return its fresh identity."""
        identity = self._ids.connection_id()
        while identity in self._sessions:
            identity = self._ids.connection_id()
        self._sessions[identity] = Session(identity=identity)
        self._channels[identity] = channel
        logger.info("Connection %s registered (%d live)", identity, len(self._sessions))
        return identity

    def get(self, identity: str) -> Session | None:
        """Return the session for *identity*, or ``None`` if it is gone."""
        return self._sessions.get(identity)

    def channel(self, identity: str) -> Channel | None:
        return self._channels.get(identity)

    def set_name(
        self,
        identity: str,
        raw_name: str | None,
        *,
        fallback: str | None = None,
    ) -> None:
        """Update the display name of *identity* from client input.

        The input is trimmed. When nothing is left, *fallback* is used if
        given, otherwise the current name is kept. The result is truncated to
        the configured maximum length.
        """
        session = self._sessions.get(identity)
        if session is None:
            return
        name = (raw_name or "").strip()
        if not name:
            name = fallback or session.display_name or DEFAULT_NAME
        session.display_name = name.strip()[: self._max_name_length]

    def unregister(self, identity: str) -> None:
        """Forget *identity*. Safe to call for unknown or removed connections."""
        if self._sessions.pop(identity, None) is None:
            return
        self._channels.pop(identity, None)
        logger.info("Connection %s unregistered (%d live)", identity, len(self._sessions))

    def __contains__(self, identity: object) -> bool:
        return identity in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
