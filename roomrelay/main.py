"""FastAPI application entry point.

Application wiring: lifespan, middleware stack, router mounting.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from roomrelay.config import get_settings
from roomrelay.routers import health
from roomrelay.routers.websocket import router as ws_router
from roomrelay.services.dispatcher import Dispatcher

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(application: FastAPI):
    """Create the relay state on startup; drop it on shutdown."""
    application.state.dispatcher = Dispatcher.from_settings(get_settings())
    logger.info("Room relay started")

    yield

    dispatcher = application.state.dispatcher
    logger.info(
        "Room relay stopping with %d connections in %d rooms",
        len(dispatcher.connections),
        len(dispatcher.rooms),
    )


# ---------------------------------------------------------------------------
# Custom Middleware
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log method, path, status_code, duration_ms for every HTTP request."""

    async def dispatch(self, request: Request, call_next):
        start_time = time.monotonic()
        response = await call_next(request)
        duration_ms = (time.monotonic() - start_time) * 1000

        logger.info(
            "%s %s %d %.1fms",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
        )
        return response


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------

app = FastAPI(title="Room Relay", lifespan=lifespan)

settings = get_settings()

# 1. CORS (outermost)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins.split(","),
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["Content-Type"],
)

# 2. Request logging
app.add_middleware(RequestLoggingMiddleware)

# -- Routers --
app.include_router(health.router, prefix="/health", tags=["health"])
app.include_router(ws_router)
