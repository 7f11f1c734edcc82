"""WebSocket endpoint for the room relay.

Provides:
- ``WS /ws``: accept, greet, receive loop, heartbeat, disconnect cleanup.

The endpoint owns only transport concerns. Every frame is handed to the
dispatcher stored on ``app.state.dispatcher``.
"""

from __future__ import annotations

import asyncio
import json
import logging

from fastapi import APIRouter, WebSocket

from roomrelay.config import get_settings
from roomrelay.services import ws_messages
from roomrelay.services.dispatcher import Dispatcher
from roomrelay.transport import WebSocketChannel

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Heartbeat task
# ---------------------------------------------------------------------------


async def _heartbeat(channel: WebSocketChannel, interval: float) -> None:
    """Queue a ``ping`` envelope every *interval* seconds.

    Runs as a background task per connection. When the channel stops
    accepting frames the task ends and disconnect cleanup takes over.
    """
    frame = json.dumps(ws_messages.ping())
    try:
        while True:
            await asyncio.sleep(interval)
            channel.send(frame)
    except Exception as exc:
        logger.debug("Heartbeat stopped: %s", exc)


# ---------------------------------------------------------------------------
# WS /ws
# ---------------------------------------------------------------------------


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    """Accept the socket, register it with the dispatcher and pump frames.

    Flow:
    1. Accept connection, start the writer task (and heartbeat if enabled)
    2. Register with the dispatcher, which sends ``welcome``
    3. Feed every text or binary frame to the dispatcher
    4. On disconnect: dispatcher cleanup, then stop background tasks
    """
    dispatcher: Dispatcher = websocket.app.state.dispatcher
    settings = get_settings()

    await websocket.accept()
    channel = WebSocketChannel(websocket, outbox_size=settings.outbox_size)

    tasks = [asyncio.create_task(channel.pump())]
    if settings.heartbeat_interval > 0:
        tasks.append(asyncio.create_task(_heartbeat(channel, settings.heartbeat_interval)))

    identity = dispatcher.connect(channel)

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes") or b""
            dispatcher.handle_message(identity, raw)
    finally:
        dispatcher.disconnect(identity)
        channel.close()
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
