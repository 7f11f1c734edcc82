"""WebSocket message factory functions.

Each function returns a plain ``{"type": ..., "payload": {...}}`` envelope.
The dispatcher calls these factories and passes the result to the
broadcaster, which serializes it once per fan-out.
"""

from __future__ import annotations


def welcome(*, connection_id: str) -> dict:
    """Sent once, right after a connection is registered."""
    return {"type": "welcome", "payload": {"id": connection_id}}


def error(*, message: str) -> dict:
    """Inbound frame was rejected. Sent to the offending connection only."""
    return {"type": "error", "payload": {"message": message}}


def room_created(*, room_id: str, members: list[dict]) -> dict:
    """Reply to ``createRoom``: the new code and its member snapshot."""
    return {"type": "roomCreated", "payload": {"roomId": room_id, "members": members}}


def joined(*, room_id: str, members: list[dict]) -> dict:
    """Reply to ``join``: the room code and its member snapshot."""
    return {"type": "joined", "payload": {"roomId": room_id, "members": members}}


def presence(*, members: list[dict]) -> dict:
    """Current member list of a room, broadcast after every membership change."""
    return {"type": "presence", "payload": {"members": members}}


def chat(
    *,
    message_id: str,
    room_id: str,
    sender: dict,
    text: str,
    ts: int,
) -> dict:
    """A chat line, delivered to every member of the room including the sender.

    *sender* is a ``{"id", "name"}`` member entry; *ts* is milliseconds since
    the Unix epoch.
    """
    return {
        "type": "chat",
        "payload": {
            "id": message_id,
            "roomId": room_id,
            "from": sender,
            "text": text,
            "ts": ts,
        },
    }


def typing(*, sender: dict, is_typing: bool) -> dict:
    """Typing indicator, delivered to everyone in the room except the sender."""
    return {"type": "typing", "payload": {"from": sender, "isTyping": is_typing}}


def ping() -> dict:
    """Heartbeat keeping idle connections open."""
    return {"type": "ping", "payload": {}}
