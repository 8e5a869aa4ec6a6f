"""Shape guards for tracker JSON payloads."""

from __future__ import annotations

from html import unescape

from redman.errors import ApiError, ParseError


def expect_dict(value: object, context: str) -> dict:
    if isinstance(value, dict):
        return value
    raise ParseError(f"{context} has unexpected type '{type(value).__name__}'")


def require_field(container: dict, key: str, context: str) -> object:
    if key not in container:
        raise ParseError(f"{context} is missing '{key}'")
    return container[key]


def first_field(container: dict, keys: tuple[str, ...], context: str) -> object:
    """Return the first of `keys` present in `container` (aliases of one field)."""
    for key in keys:
        if key in container:
            return container[key]
    raise ParseError(f"{context} is missing '{keys[0]}'")


def require_list_of_dicts(container: dict, key: str, context: str) -> list[dict]:
    values = require_field(container, key, context)
    if not isinstance(values, list):
        raise ParseError(f"{context}.{key} has unexpected type '{type(values).__name__}'")
    return [expect_dict(value, f"{context}.{key}[{idx}]") for idx, value in enumerate(values)]


def require_int(value: object, context: str) -> int:
    """Coerce an int or an all-digit string; anything else is a ParseError."""
    if isinstance(value, bool):
        raise ParseError(f"{context} expected numeric value, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        cleaned = value.strip()
        if cleaned.isascii() and cleaned.isdigit():
            return int(cleaned)
    raise ParseError(f"{context} expected numeric value, got {value!r}")


def require_str(value: object, context: str) -> str:
    if isinstance(value, str):
        return value
    raise ParseError(f"{context} expected text, got {value!r}")


def decoded_text(value: object, context: str) -> str:
    """Text field with HTML entities decoded (the tracker escapes names)."""
    return unescape(require_str(value, context))


def response_payload(payload: object, context: str) -> dict:
    """Unwrap `{status, response}`; a status other than "success" is an ApiError."""
    root = expect_dict(payload, f"{context} payload")
    status_value = root.get("status")
    status = status_value.strip() if isinstance(status_value, str) else str(status_value)
    if status != "success":
        error_text = root.get("error")
        detail = f" ({error_text})" if isinstance(error_text, str) and error_text else ""
        raise ApiError(status, f"{context} returned error status: {status}{detail}")
    return expect_dict(root.get("response"), f"{context}.response")
