"""Login widget data received as a JSON object (the onauth callback payload)."""

import json
from decimal import Decimal
from typing import IO, Callable

from .login import MalformedDataError, Verifier
from .pairs import HASH_FIELD, INTEGER_FIELDS, STRING_FIELDS
from .user import ParsedUser, User, UserBuilder, verify_parsed


class _Object(list):
    """Key/value pairs of a decoded JSON object, in document order."""


class _Constant:
    """NaN or Infinity, which strict JSON does not allow."""

    def __init__(self, name: str):
        self.name = name


def _read_text(source: bytes | str | IO) -> str:
    if hasattr(source, "read"):
        source = source.read()
    if isinstance(source, (bytes, bytearray)):
        try:
            return bytes(source).decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedDataError(f"input is not UTF-8: {e}") from e
    if isinstance(source, str):
        return source
    raise TypeError(f"expected bytes, str or a readable file, got {type(source).__name__}")


def _decode_object(text: str) -> _Object:
    if not text.strip():
        raise MalformedDataError("expected start of object, got end of input")
    try:
        doc = json.loads(
            text,
            object_pairs_hook=_Object,
            parse_float=Decimal,
            parse_constant=_Constant,
        )
    except (ValueError, RecursionError) as e:
        raise MalformedDataError(f"invalid JSON: {e}") from e
    if not isinstance(doc, _Object):
        raise MalformedDataError(f"expected start of object, got {_describe(doc)}")
    return doc


def _describe(value) -> str:
    if isinstance(value, _Object):
        return "object"
    if isinstance(value, list):
        return "array"
    if isinstance(value, _Constant):
        return value.name
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, Decimal)):
        return "number"
    return "string"


def parse_user_from_json(
    source: bytes | str | IO,
    on_unknown_field: Callable[[str], None] | None = None,
) -> ParsedUser:
    """Extract user data, pairs and the expected tag from one JSON object.

    The document must be a single object whose values are all scalars.
    Numeric fields must be JSON integers and text fields JSON strings.
    """
    builder = UserBuilder(on_unknown_field)
    for key, value in _decode_object(_read_text(source)):
        if isinstance(value, _Constant):
            raise MalformedDataError(f"unexpected JSON constant {value.name} for {key!r}", key)
        if isinstance(value, list):
            raise MalformedDataError(f"expected value for {key!r}, got {_describe(value)}", key)

        if key in INTEGER_FIELDS:
            if isinstance(value, bool) or not isinstance(value, int):
                raise MalformedDataError(
                    f"{key} must be an integer, got {_describe(value)}", key,
                )
            builder.add_int(key, value)
        elif key in STRING_FIELDS or key == HASH_FIELD:
            if not isinstance(value, str):
                raise MalformedDataError(f"{key} must be a string, got {_describe(value)}", key)
            if key == HASH_FIELD:
                builder.add_hash(value)
            else:
                builder.add_str(key, value)
        else:
            builder.ignore(key)
    return builder.build()


def convert_and_verify_json(
    source: bytes | str | IO,
    verifier: Verifier,
    on_unknown_field: Callable[[str], None] | None = None,
) -> User:
    """Parse a JSON object into a User, checked against the object's hash.

    Raises MalformedDataError for unparseable input and InvalidHashError when
    the hash is missing or does not match.
    """
    return verify_parsed(parse_user_from_json(source, on_unknown_field), verifier)
