"""Key/value pairs of user data received from the Telegram login widget."""

from typing import NamedTuple


HASH_FIELD = "hash"
INTEGER_FIELDS = frozenset({"id", "auth_date"})
STRING_FIELDS = frozenset({"first_name", "last_name", "username", "photo_url"})
RECOGNIZED_FIELDS = INTEGER_FIELDS | STRING_FIELDS | {HASH_FIELD}
REQUIRED_FIELDS = INTEGER_FIELDS


class FieldPair(NamedTuple):
    name: str
    value: str


class FieldPairStore:
    """Pairs collected from one login attempt, at most one per field name.

    The hash field is never stored: it is what the pairs are checked against.
    """

    def __init__(self):
        self._pairs: dict[str, FieldPair] = {}

    def add(self, name: str, value: str) -> None:
        if name not in RECOGNIZED_FIELDS:
            raise KeyError(f"not a user data field: {name!r}")
        if name == HASH_FIELD:
            raise KeyError("the hash is not part of the user data")
        if name in self._pairs:
            raise KeyError(f"duplicate field: {name!r}")
        self._pairs[name] = FieldPair(name, value)

    def snapshot(self) -> tuple[FieldPair, ...]:
        return tuple(self._pairs.values())

    def __contains__(self, name: object) -> bool:
        return name in self._pairs

    def __len__(self) -> int:
        return len(self._pairs)

    def __repr__(self) -> str:
        names = ", ".join(self._pairs)
        return f"FieldPairStore({names})"


def estimate_size(pairs) -> int:
    """Length of the check string the pairs produce: one '=' per pair plus separators."""
    if not pairs:
        return 0
    return 2 * len(pairs) - 1 + sum(len(p.name) + len(p.value) for p in pairs)
