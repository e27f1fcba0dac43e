"""Decode and encode example literals.

Examples are written in source as Python literal expressions (strings,
numbers, booleans, None, lists, dicts). They are decoded into the JSON
value tree the contract stores, and encoded back for generated source.
Anything without a JSON counterpart (sets, bytes, complex, NaN, non-string
keys) is rejected.
"""

from __future__ import annotations

import ast
import math
from typing import Any


class MalformedLiteralError(ValueError):
    """A literal expression could not be decoded into a JSON value."""


def _to_json(value: Any, where: str) -> Any:
    if value is None or isinstance(value, (bool, str)):
        return value
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            raise MalformedLiteralError(f"{where}: {value!r} has no JSON representation")
        return value
    if isinstance(value, (list, tuple)):
        return [_to_json(item, f"{where}[{i}]") for i, item in enumerate(value)]
    if isinstance(value, dict):
        result = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise MalformedLiteralError(f"{where}: mapping key {key!r} is not a string")
            result[key] = _to_json(item, f"{where}.{key}")
        return result
    raise MalformedLiteralError(f"{where}: {type(value).__name__} values are not supported")


def decode_literal(text: str) -> Any:
    """Decode a literal expression into a JSON-compatible value."""
    try:
        value = ast.literal_eval(text.strip())
    except (ValueError, SyntaxError, TypeError, MemoryError, RecursionError) as exc:
        raise MalformedLiteralError(f"not a literal expression: {text!r}") from exc
    return _to_json(value, "$")


def encode_literal(value: Any) -> str:
    """Encode a JSON-compatible value as a Python literal expression."""
    if value is None or isinstance(value, (bool, int, str)):
        return repr(value)
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            raise MalformedLiteralError(f"{value!r} has no literal representation")
        return repr(value)
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(encode_literal(item) for item in value) + "]"
    if isinstance(value, dict):
        items = []
        for key, item in value.items():
            if not isinstance(key, str):
                raise MalformedLiteralError(f"mapping key {key!r} is not a string")
            items.append(f"{key!r}: {encode_literal(item)}")
        return "{" + ", ".join(items) + "}"
    raise MalformedLiteralError(f"{type(value).__name__} values are not supported")
