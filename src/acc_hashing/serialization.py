"""Deterministic JSON serialization of canonical forms.

The output matches what ``JSON.stringify`` produces for the same canonical
structure: compact separators, non-ASCII characters emitted verbatim,
canonical fields in declaration order, free-form keys in ECMAScript
property order, and numbers rendered with the ECMAScript Number-to-String
rules. Independent verifiers rebuild these bytes, so every rule here is part
of the hash contract.
"""

from __future__ import annotations

import json
import math
from collections.abc import Mapping

import jcs
from pydantic import BaseModel
from pydantic.alias_generators import to_camel

from .errors import EncodingError

__all__ = [
    "MAX_SAFE_INTEGER",
    "MAX_ARRAY_INDEX",
    "format_number",
    "to_payload",
    "serialize",
    "encode",
]

MAX_SAFE_INTEGER = 2**53 - 1
"""Largest integer every JSON consumer can represent without rounding."""

MAX_ARRAY_INDEX = 2**32 - 2
"""Largest key that ECMAScript treats as an array index."""


def format_number(value: int | float) -> str:
    """Render a number the way ECMAScript ``Number.prototype.toString`` does.

    The digits come from the RFC 8785 number serializer, which follows the
    ECMAScript rules; the range checks here keep values that would lose
    precision in a JavaScript verifier out of the hash.

    Raises:
        EncodingError: For NaN, infinities and integers outside the safe range.
    """

    if isinstance(value, bool):
        raise EncodingError("Booleans are not numbers")
    if isinstance(value, int) and abs(value) > MAX_SAFE_INTEGER:
        raise EncodingError(
            f"Integer {value} exceeds the safe range (+/-{MAX_SAFE_INTEGER}); "
            "pass it as a string"
        )
    if isinstance(value, float) and not math.isfinite(value):
        raise EncodingError(f"Non-finite number {value!r} has no JSON encoding")
    if value == 0:
        # -0 prints as "0".
        return "0"
    return jcs.canonicalize(value).decode()


def _is_array_index(key: str) -> bool:
    """Return True for keys that ``JSON.stringify`` emits as array indices."""

    if not key.isascii() or not key.isdigit():
        return False
    if len(key) > 1 and key[0] == "0":
        return False
    return int(key) <= MAX_ARRAY_INDEX


def _free_value(value: object, location: str) -> object:
    """Validate and copy a free-form JSON value.

    Mapping keys are laid out as ECMAScript orders own properties: array
    index keys first in ascending numeric order, then the remaining keys in
    insertion order.
    """

    if value is None or isinstance(value, (bool, str)):
        return value
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, BaseModel):
        return to_payload(value)
    if isinstance(value, Mapping):
        for key in value:
            if not isinstance(key, str):
                raise EncodingError(
                    f"Object keys must be strings, got {type(key).__name__}",
                    location=location or None,
                )
        index_keys = sorted((key for key in value if _is_array_index(key)), key=int)
        other_keys = [key for key in value if not _is_array_index(key)]
        return {
            key: _free_value(value[key], f"{location}.{key}" if location else key)
            for key in index_keys + other_keys
        }
    if isinstance(value, (list, tuple)):
        return [
            _free_value(item, f"{location}[{index}]")
            for index, item in enumerate(value)
        ]
    raise EncodingError(
        f"Value of type {type(value).__name__} is not JSON serializable",
        location=location or None,
    )


def to_payload(form: object) -> object:
    """Convert a canonical form into plain JSON values in emission order.

    Canonical models contribute only the fields that were explicitly set,
    in class declaration order, under their camelCase wire names.
    """

    if isinstance(form, list):
        return [to_payload(item) for item in form]
    if not isinstance(form, BaseModel):
        return _free_value(form, "")

    payload: dict[str, object] = {}
    for name, info in type(form).model_fields.items():
        if info.exclude or name not in form.model_fields_set:
            continue
        wire_name = info.alias or to_camel(name)
        payload[wire_name] = _free_value(getattr(form, name), wire_name)
    return payload


def _dump(value: object) -> str:
    if value is None:
        return "null"
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, (int, float)):
        return format_number(value)
    if isinstance(value, list):
        return "[" + ",".join(_dump(item) for item in value) + "]"
    if isinstance(value, dict):
        return (
            "{"
            + ",".join(
                f"{json.dumps(key, ensure_ascii=False)}:{_dump(item)}"
                for key, item in value.items()
            )
            + "}"
        )
    raise EncodingError(f"Value of type {type(value).__name__} is not JSON serializable")


def serialize(form: object) -> str:
    """Return the compact deterministic JSON text for a canonical form."""

    return _dump(to_payload(form))


def encode(form: object) -> bytes:
    """Return the UTF-8 bytes that are fed to the digest.

    Raises:
        EncodingError: The form holds an unsupported value or a string that
            is not valid Unicode (for example a lone surrogate).
    """

    text = serialize(form)
    try:
        return text.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise EncodingError(f"Canonical text is not valid UTF-8: {exc.reason}") from exc
