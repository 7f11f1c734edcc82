"""Domain exception classes for the room relay.

These exceptions are raised while decoding inbound frames and translated into
``error`` envelopes by the dispatcher. None of them is fatal to the process.
"""

from __future__ import annotations


class ProtocolError(Exception):
    """Raised when an inbound frame cannot be decoded into a command."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
