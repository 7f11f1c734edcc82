"""Inbound frame decoding.

Turns a raw text (or binary) frame into one of the typed commands in
:mod:`roomrelay.models`, or raises :class:`~roomrelay.exceptions.ProtocolError`
with the message to report back to the sender.
"""

from __future__ import annotations

import json

from pydantic import TypeAdapter, ValidationError

from roomrelay.exceptions import ProtocolError
from roomrelay.models import COMMAND_TYPES, Command

INVALID_JSON = "Invalid JSON"
UNKNOWN_TYPE = "Unknown type"
INVALID_PAYLOAD = "Invalid payload"

_command_adapter: TypeAdapter[Command] = TypeAdapter(Command)


def decode_command(raw: str | bytes) -> Command:
    """Decode *raw* into a validated command.

    Raises:
        ProtocolError: ``Invalid JSON`` when the frame does not parse,
            ``Unknown type`` when it is not an object with a known ``type``,
            ``Invalid payload`` when the payload does not fit that type.
    """
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    try:
        data = json.loads(raw)
    except (ValueError, RecursionError):
        raise ProtocolError(INVALID_JSON) from None

    if not isinstance(data, dict):
        raise ProtocolError(UNKNOWN_TYPE)
    kind = data.get("type")
    if not isinstance(kind, str) or kind not in COMMAND_TYPES:
        raise ProtocolError(UNKNOWN_TYPE)

    if data.get("payload") is None:
        data = {**data, "payload": {}}

    try:
        return _command_adapter.validate_python(data)
    except ValidationError:
        raise ProtocolError(INVALID_PAYLOAD) from None
