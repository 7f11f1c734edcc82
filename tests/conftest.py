"""Shared pytest fixtures.

Provides:
- ``dispatcher``: a fresh relay with deterministic connection IDs and room codes
- ``connect``: registers a ``FakeChannel`` and returns ``(identity, channel)``
"""

from __future__ import annotations

import pytest

from roomrelay.services.dispatcher import Dispatcher
from tests.factories import FakeChannel, ScriptedIdentifierSource


@pytest.fixture
def ids() -> ScriptedIdentifierSource:
    return ScriptedIdentifierSource(
        connection_ids=["conn-A", "conn-B", "conn-C", "conn-D"],
        room_codes=["ROOM01", "ROOM02", "ROOM03"],
    )


@pytest.fixture
def dispatcher(ids) -> Dispatcher:
    return Dispatcher(ids=ids, clock=lambda: 1_700_000_000_000)


@pytest.fixture
def connect(dispatcher):
    """Factory: connect a new fake client and clear its ``welcome`` frame."""

    def _connect(*, ready: bool = True) -> tuple[str, FakeChannel]:
        channel = FakeChannel()
        identity = dispatcher.connect(channel)
        channel.clear()
        channel.ready = ready
        return identity, channel

    return _connect
