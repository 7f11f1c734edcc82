"""Health check endpoint."""

from __future__ import annotations

import time

from fastapi import APIRouter, Request

router = APIRouter()

_start_time = time.monotonic()


@router.get("")
async def health_check(request: Request):
    """Return liveness plus live connection and room counts."""
    dispatcher = request.app.state.dispatcher
    return {
        "status": "ok",
        "uptime_seconds": round(time.monotonic() - _start_time, 1),
        "connections": len(dispatcher.connections),
        "rooms": len(dispatcher.rooms),
    }
