"""The Telegram user described by login widget data."""

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable
from urllib.parse import SplitResult, urlsplit

from .login import KEY_SIZE, MalformedDataError, Verifier
from .pairs import HASH_FIELD, REQUIRED_FIELDS, FieldPairStore


INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_HEX_RE = re.compile(r"[0-9a-fA-F]*")
_URL_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f]")
_BAD_ESCAPE_RE = re.compile(r"%(?![0-9a-fA-F]{2})")


@dataclass(frozen=True)
class User:
    """A verified Telegram user.

    Optional fields are None when the widget did not send them. An empty
    string means the field was sent empty; callers that do not care about
    the difference can test truthiness.

    auth_timestamp holds the signed seconds since the epoch exactly as sent;
    auth_date converts it on access and raises OverflowError past what
    datetime can represent (years 1 to 9999).
    """

    id: int
    auth_timestamp: int
    first_name: str | None = None
    last_name: str | None = None
    username: str | None = None
    photo_url: str | None = None

    @property
    def auth_date(self) -> datetime:
        return _EPOCH + timedelta(seconds=self.auth_timestamp)

    @property
    def photo_url_parts(self) -> SplitResult | None:
        return urlsplit(self.photo_url) if self.photo_url is not None else None

    @property
    def display_name(self) -> str:
        name = " ".join(n for n in (self.first_name, self.last_name) if n)
        if name:
            return name
        if self.username:
            return f"@{self.username}"
        return str(self.id)

    def to_dict(self) -> dict:
        """Serialize to a JSON-friendly dict, omitting absent fields."""
        d = {"id": self.id, "auth_date": self.auth_timestamp}
        for name in ("first_name", "last_name", "username", "photo_url"):
            value = getattr(self, name)
            if value is not None:
                d[name] = value
        return d

    def to_telegram_user(self):
        """Convert to a python-telegram-bot User.

        That type requires a first name, so an absent one becomes "".
        """
        from telegram import User as TelegramUser

        return TelegramUser(
            id=self.id,
            first_name=self.first_name or "",
            is_bot=False,
            last_name=self.last_name,
            username=self.username,
        )


@dataclass
class ParsedUser:
    """Everything an adapter extracted from one input, before verification."""

    user: User | None
    pairs: FieldPairStore
    expected_mac: bytes | None
    ignored: list[str] = field(default_factory=list)


class UserBuilder:
    """Collects typed field values into both the pair store and a User."""

    def __init__(self, on_unknown_field: Callable[[str], None] | None = None):
        self.pairs = FieldPairStore()
        self.expected_mac: bytes | None = None
        self.ignored: list[str] = []
        self._values: dict = {}
        self._seen_hash = False
        self._on_unknown_field = on_unknown_field

    def add_int(self, name: str, value: int) -> None:
        if not INT64_MIN <= value <= INT64_MAX:
            raise MalformedDataError(f"{name} out of range for a 64-bit integer", name)
        self._claim(name)
        self._values["auth_timestamp" if name == "auth_date" else name] = value
        self.pairs.add(name, str(value))

    def add_str(self, name: str, value: str) -> None:
        self._claim(name)
        if name == "photo_url":
            parse_url(value)
        self.pairs.add(name, value)
        self._values[name] = value

    def add_hash(self, value: str) -> None:
        if self._seen_hash:
            raise MalformedDataError("duplicate field: 'hash'", HASH_FIELD)
        self._seen_hash = True
        self.expected_mac = decode_hash(value)

    def ignore(self, name: str) -> None:
        self.ignored.append(name)
        if self._on_unknown_field is not None:
            self._on_unknown_field(name)

    def build(self) -> ParsedUser:
        user = None
        if "id" in self._values and "auth_timestamp" in self._values:
            user = User(**self._values)
        return ParsedUser(user, self.pairs, self.expected_mac, self.ignored)

    def _claim(self, name: str) -> None:
        if name in self.pairs:
            raise MalformedDataError(f"duplicate field: {name!r}", name)


def verify_parsed(parsed: ParsedUser, verifier: Verifier) -> User:
    """Return the parsed user if the widget's hash signs its data.

    Missing required fields are a parse error and are reported before any
    hash is computed.
    """
    missing = sorted(name for name in REQUIRED_FIELDS if name not in parsed.pairs)
    if missing:
        raise MalformedDataError(f"missing required field: {missing[0]!r}", missing[0])
    verifier.check(parsed.pairs.snapshot(), parsed.expected_mac)
    return parsed.user


def parse_url(value: str) -> SplitResult:
    """Split a URL, rejecting control characters and broken percent-escapes."""
    bad = _URL_CONTROL_RE.search(value)
    if bad:
        raise MalformedDataError(
            f"invalid photo_url: control character at offset {bad.start()}", "photo_url",
        )
    bad = _BAD_ESCAPE_RE.search(value)
    if bad:
        raise MalformedDataError(
            f"invalid photo_url: bad escape {value[bad.start():bad.start() + 3]!r}", "photo_url",
        )
    try:
        return urlsplit(value)
    except ValueError as e:
        raise MalformedDataError(f"invalid photo_url: {e}", "photo_url") from e


def decode_hash(value: str) -> bytes:
    """Decode the 64 hex character hash into the 32 byte tag."""
    if len(value) != 2 * KEY_SIZE:
        raise MalformedDataError(
            f"hash must be {2 * KEY_SIZE} characters long, got {len(value)}", HASH_FIELD,
        )
    if not _HEX_RE.fullmatch(value):
        raise MalformedDataError("failure to decode incoming hash: not hexadecimal", HASH_FIELD)
    return bytes.fromhex(value)
