"""Pure helpers for reading transport responses and patching payloads."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from modelsync.core.types import Payload


def response_data(response: Any) -> Any:
    """Extract the ``data`` member of a transport response.

    Transports may answer with a mapping (``{"data": ...}``), an object with a
    ``data`` attribute, or nothing at all.

    Args:
        response: Value a transport call resolved with.

    Returns:
        The ``data`` member, or None when the response has none.
    """
    if response is None:
        return None
    if isinstance(response, Mapping):
        return response.get("data")
    return getattr(response, "data", None)


def read_field(data: Any, key: str) -> Any:
    """Read ``key`` from a mapping or an object, None when absent."""
    if data is None:
        return None
    if isinstance(data, Mapping):
        return data.get(key)
    return getattr(data, key, None)


def with_field(payload: Payload, key: str, value: Any) -> Payload:
    """Return a copy of a mapping payload with ``key`` set to ``value``.

    Non-mapping payloads are returned unchanged.
    """
    if isinstance(payload, Mapping):
        return {**payload, key: value}
    return payload
