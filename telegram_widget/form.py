"""Login widget data received as form fields (the redirect callback query)."""

import re
from typing import Callable, Mapping, Sequence
from urllib.parse import parse_qs

from .login import MalformedDataError, NotSingleValueError, Verifier
from .pairs import HASH_FIELD, INTEGER_FIELDS, STRING_FIELDS
from .user import ParsedUser, User, UserBuilder, verify_parsed


_INT_RE = re.compile(r"[+-]?[0-9]+")


def parse_form_int(name: str, raw: str) -> int:
    """Parse a base-10 integer form value, rejecting anything int() would merely tolerate."""
    if not _INT_RE.fullmatch(raw):
        raise MalformedDataError(f"{name} must be a base-10 integer, got {raw!r}", name)
    try:
        return int(raw)
    except ValueError as e:
        # Past the interpreter's digit limit; far outside 64 bits anyway.
        raise MalformedDataError(f"{name} out of range for a 64-bit integer", name) from e


def parse_user_from_form(
    form: Mapping[str, Sequence[str]],
    on_unknown_field: Callable[[str], None] | None = None,
) -> ParsedUser:
    """Extract user data, pairs and the expected tag from multi-valued form fields.

    Fields that are not part of the widget's data are skipped and reported to
    on_unknown_field, if given.
    """
    builder = UserBuilder(on_unknown_field)
    for key, values in form.items():
        if key not in INTEGER_FIELDS and key not in STRING_FIELDS and key != HASH_FIELD:
            builder.ignore(key)
            continue
        if isinstance(values, str):
            raise MalformedDataError(f"expected a sequence of values for {key!r}, got a string", key)
        if len(values) != 1:
            raise NotSingleValueError(key, len(values))
        value = values[0]
        if key == HASH_FIELD:
            builder.add_hash(value)
        elif key in INTEGER_FIELDS:
            builder.add_int(key, parse_form_int(key, value))
        else:
            builder.add_str(key, value)
    return builder.build()


def convert_and_verify_form(
    form: Mapping[str, Sequence[str]],
    verifier: Verifier,
    on_unknown_field: Callable[[str], None] | None = None,
) -> User:
    """Parse form fields into a User, checked against the form's hash.

    Raises MalformedDataError for unparseable input and InvalidHashError when
    the hash is missing or does not match.
    """
    return verify_parsed(parse_user_from_form(form, on_unknown_field), verifier)


def convert_and_verify_query(
    query: str,
    verifier: Verifier,
    on_unknown_field: Callable[[str], None] | None = None,
) -> User:
    """Like convert_and_verify_form, starting from a raw query string."""
    try:
        form = parse_qs(query, keep_blank_values=True, strict_parsing=bool(query))
    except ValueError as e:
        raise MalformedDataError(f"invalid query string: {e}") from e
    return convert_and_verify_form(form, verifier, on_unknown_field)
