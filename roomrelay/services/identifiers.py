"""Short random identifiers for connections, rooms and chat messages.

Tokens are drawn with :mod:`secrets` so they are unguessable as well as
unique in practice.
"""

from __future__ import annotations

import secrets
import string

from roomrelay.config import Settings

# URL-safe alphabet (64 symbols), used for connection and message IDs.
URL_ALPHABET: str = string.ascii_letters + string.digits + "_-"

# Room codes are typed by humans, so keep them to uppercase letters and digits.
ROOM_CODE_ALPHABET: str = string.ascii_uppercase + string.digits


def random_token(length: int, alphabet: str = URL_ALPHABET) -> str:
    """Return a random string of *length* symbols drawn from *alphabet*."""
    if length <= 0:
        raise ValueError("length must be positive")
    return "".join(secrets.choice(alphabet) for _ in range(length))


class IdentifierSource:
    """Produces connection IDs, room codes and message IDs of configured length."""

    def __init__(
        self,
        *,
        connection_id_length: int = 8,
        room_code_length: int = 6,
        message_id_length: int = 10,
    ) -> None:
        self.connection_id_length = connection_id_length
        self.room_code_length = room_code_length
        self.message_id_length = message_id_length

    @classmethod
    def from_settings(cls, settings: Settings) -> IdentifierSource:
        return cls(
            connection_id_length=settings.connection_id_length,
            room_code_length=settings.room_code_length,
            message_id_length=settings.message_id_length,
        )

    def connection_id(self) -> str:
        return random_token(self.connection_id_length)

    def room_code(self) -> str:
        return random_token(self.room_code_length, ROOM_CODE_ALPHABET)

    def message_id(self) -> str:
        return random_token(self.message_id_length)
