"""Telegram login widget data verification.

The widget signs the user data it hands to the website: the fields other
than "hash" are sorted by name, joined as "key=value" lines, and signed with
HMAC-SHA256 keyed by SHA256(bot_token). Pure functions, no I/O.

Reference: https://core.telegram.org/widgets/login#checking-authorization
"""

import hashlib
import hmac

from .pairs import FieldPair


class LoginWidgetError(Exception):
    """Base class for rejected login widget data."""


class InvalidHashError(LoginWidgetError):
    """The data could not be authenticated with its hash and the bot token.

    Raised both for a missing hash and for a wrong one, always with the same
    message, so the cause of a rejection is not revealed to the sender.
    """

    def __init__(self):
        super().__init__("the hash is invalid")


class MalformedDataError(LoginWidgetError, ValueError):
    """The input could not be parsed into user data."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class NotSingleValueError(MalformedDataError):
    """A form carried zero or multiple values for a user data field."""

    def __init__(self, field: str, count: int):
        super().__init__(
            f"zero or multiple values for a key in form: {field!r} has {count}",
            field,
        )


def is_invalid_hash(exc: BaseException) -> bool:
    return isinstance(exc, InvalidHashError)


KEY_SIZE = hashlib.sha256().digest_size


def build_check_string(pairs) -> str:
    """Build the sorted newline-separated data-check-string for HMAC.

    Names are compared by code point, which orders UTF-8 text the same way
    as comparing its bytes.
    """
    return "\n".join(f"{p.name}={p.value}" for p in sorted(pairs, key=lambda p: p.name))


def hash_bot_token(token: str | bytes) -> bytes:
    """Derive the HMAC key from a bot token: the raw SHA-256 digest, not hex."""
    if isinstance(token, str):
        token = token.encode()
    return hashlib.sha256(token).digest()


class Verifier:
    """Checks widget signatures against one bot's key.

    Build it with from_token() or, when the token is already hashed (for
    example to avoid rehashing on every request), with from_key().
    """

    __slots__ = ("_key",)

    def __init__(self, key: bytes):
        if len(key) != KEY_SIZE:
            raise ValueError(f"key must be {KEY_SIZE} bytes, got {len(key)}")
        self._key = bytes(key)

    @classmethod
    def from_token(cls, token: str | bytes) -> "Verifier":
        return cls(hash_bot_token(token))

    @classmethod
    def from_key(cls, key: bytes) -> "Verifier":
        return cls(key)

    def compute_mac(self, check_string: str) -> bytes:
        return hmac.new(self._key, check_string.encode(), hashlib.sha256).digest()

    def verify(self, check_string: str, expected_mac: bytes) -> bool:
        """Constant-time comparison of the expected tag with the computed one."""
        return hmac.compare_digest(self.compute_mac(check_string), expected_mac)

    def check(self, pairs: tuple[FieldPair, ...], expected_mac: bytes | None) -> None:
        """Raise InvalidHashError unless expected_mac signs the pairs."""
        # A missing hash fails exactly like a wrong one.
        if expected_mac is None or not self.verify(build_check_string(pairs), expected_mac):
            raise InvalidHashError()

    def __repr__(self) -> str:
        return "Verifier(<key>)"
