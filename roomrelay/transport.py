"""Transport channels.

A :class:`Channel` is what the relay core sees of a connection: a readiness
flag and a non-blocking ``send``. :class:`WebSocketChannel` implements it on
top of a Starlette WebSocket with a bounded outbox drained by a writer task,
so fan-out never waits on a slow client.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from starlette.websockets import WebSocket, WebSocketState

logger = logging.getLogger(__name__)


class Channel(Protocol):
    """Transport-facing handle for one connection."""

    @property
    def is_ready(self) -> bool: ...

    def send(self, text: str) -> None:
        """Queue *text* for delivery. May raise if the channel cannot accept it."""
        ...


class OutboxFullError(Exception):
    """Raised by :meth:`WebSocketChannel.send` when the outbox is full."""


class WebSocketChannel:
    """Channel backed by a Starlette :class:`WebSocket`."""

    def __init__(self, websocket: WebSocket, *, outbox_size: int = 256) -> None:
        self._websocket = websocket
        self._outbox: asyncio.Queue[str] = asyncio.Queue(maxsize=outbox_size)
        self._closed = False

    @property
    def is_ready(self) -> bool:
        return (
            not self._closed
            and self._websocket.client_state == WebSocketState.CONNECTED
            and self._websocket.application_state == WebSocketState.CONNECTED
        )

    def send(self, text: str) -> None:
        if self._closed:
            raise ConnectionError("channel is closed")
        try:
            self._outbox.put_nowait(text)
        except asyncio.QueueFull:
            raise OutboxFullError(f"outbox full ({self._outbox.maxsize} pending)") from None

    async def pump(self) -> None:
        """Write queued frames to the socket until it fails or the task is cancelled."""
        while True:
            text = await self._outbox.get()
            try:
                await self._websocket.send_text(text)
            except Exception as exc:
                # Socket is gone; the receive loop will run disconnect cleanup.
                logger.debug("Writer stopped: %s", exc)
                self._closed = True
                return

    def close(self) -> None:
        """Stop accepting frames. Anything still queued is dropped."""
        self._closed = True
