"""Inbound request decoding and upstream form parameter building."""

import json
from typing import Any

from .config import RelayConfig


class InvalidRequestBody(ValueError):
    """Raised when a request body cannot be decoded into the expected shape."""


class _ObjectPairs(list):
    """A decoded JSON object, kept as (key, value) pairs in document order."""


def _reject_constant(name: str) -> Any:
    raise InvalidRequestBody(f"body is not valid JSON: invalid literal {name}")


_decoder = json.JSONDecoder(
    object_pairs_hook=_ObjectPairs, parse_constant=_reject_constant
)


def _json_type(value: Any) -> str:
    if isinstance(value, _ObjectPairs):
        return "object"
    if isinstance(value, list):
        return "array"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, (int, float)):
        return "number"
    return type(value).__name__


def _decode_first_value(body: bytes) -> Any:
    """Decode the first JSON value in body, ignoring anything after it."""
    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError as e:
        raise InvalidRequestBody("body is not valid UTF-8") from e

    text = text.lstrip(" \t\r\n")
    if not text:
        raise InvalidRequestBody("body is empty")

    try:
        value, _ = _decoder.raw_decode(text)
    except json.JSONDecodeError as e:
        raise InvalidRequestBody(f"body is not valid JSON: {e.msg}") from e
    return value


def read_string_field(body: bytes, field: str) -> str:
    """
    Extract a single string field from a JSON object body.

    Keys are matched case-insensitively and applied in document order, so
    the last matching key wins. A null value leaves the field unchanged and
    a missing field reads as the empty string.

    Args:
        body: Raw request body
        field: Name of the field to extract

    Returns:
        The field value, or "" when absent

    Raises:
        InvalidRequestBody: If the body is not a JSON object (or null), or any
            key matching the field holds a non-string value.
    """
    document = _decode_first_value(body)
    if document is None:
        return ""
    if not isinstance(document, _ObjectPairs):
        raise InvalidRequestBody(
            f"expected a JSON object, got {_json_type(document)}"
        )

    folded = field.casefold()
    value = ""
    for key, candidate in document:
        if key != field and key.casefold() != folded:
            continue
        if candidate is None:
            continue
        if not isinstance(candidate, str):
            raise InvalidRequestBody(
                f"field '{field}' must be a string, got {_json_type(candidate)}"
            )
        value = candidate
    return value


def authorization_code_params(config: RelayConfig, code: str) -> dict[str, str]:
    """Form parameters for exchanging an authorization code."""
    return {
        "code": code,
        "grant_type": "authorization_code",
        "client_id": config.client_id,
        "client_secret": config.client_secret,
        "redirect_uri": config.redirect_uri,
    }


def refresh_token_params(config: RelayConfig, refresh_token: str) -> dict[str, str]:
    """Form parameters for a refresh token grant (no redirect_uri)."""
    return {
        "refresh_token": refresh_token,
        "grant_type": "refresh_token",
        "client_id": config.client_id,
        "client_secret": config.client_secret,
    }
