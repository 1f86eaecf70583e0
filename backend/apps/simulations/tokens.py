"""
Concurrency token - opaque version stamp attached to every Simulation.

Outside this module a token is only compared for equality or replaced by its
successor. On the wire it travels as base64 text, usually as an entity tag.
"""

import base64
import binascii
import secrets

from core.exceptions import InvalidTokenError

INITIAL_TOKEN_BYTES = 8


class ConcurrencyToken:
    """Immutable byte-string version stamp."""

    __slots__ = ("_value",)

    def __init__(self, value):
        value = bytes(value) if value is not None else b""
        if not value:
            raise InvalidTokenError("Concurrency token must not be empty.")
        self._value = value

    @classmethod
    def initial(cls):
        """Token for a freshly created record."""
        return cls(secrets.token_bytes(INITIAL_TOKEN_BYTES))

    @classmethod
    def from_wire(cls, raw):
        """
        Decode a token supplied by a client (If-Match header or body).

        Accepts plain base64, a quoted entity tag, or a weak entity tag
        (W/"..."). Raises InvalidTokenError for anything else.
        """
        if raw is None:
            raise InvalidTokenError("If-Match is required.")

        text = raw.strip()
        if text[:2].upper() == "W/":
            text = text[2:]
        if len(text) >= 2 and text.startswith('"') and text.endswith('"'):
            text = text[1:-1]

        if not text:
            raise InvalidTokenError("If-Match is required.")

        try:
            value = base64.b64decode(text, validate=True)
        except (binascii.Error, ValueError):
            raise InvalidTokenError()

        return cls(value)

    @property
    def value(self):
        return self._value

    def next(self):
        """
        Successor token: the big-endian counter value plus one.

        Width is at least INITIAL_TOKEN_BYTES and grows on overflow, so a
        record never sees the same token twice.
        """
        counter = int.from_bytes(self._value, "big") + 1
        width = max(
            INITIAL_TOKEN_BYTES, len(self._value), (counter.bit_length() + 7) // 8
        )
        return ConcurrencyToken(counter.to_bytes(width, "big"))

    def to_wire(self):
        return base64.b64encode(self._value).decode("ascii")

    def as_etag(self):
        return f'"{self.to_wire()}"'

    def __bytes__(self):
        return self._value

    def __eq__(self, other):
        if not isinstance(other, ConcurrencyToken):
            return NotImplemented
        return secrets.compare_digest(self._value, other._value)

    def __hash__(self):
        return hash(self._value)

    def __repr__(self):
        return f"ConcurrencyToken({self.to_wire()!r})"
