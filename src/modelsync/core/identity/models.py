"""Model identity configuration and local id allocation.

Usage:
    class Note(Model):
        identity_config = IdentityConfig(identity_key="id", set_identity_from_response=True)

    local_id = new_local_id()
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any

LOCAL_ID_KEY = "local_id"
"""Identity key that makes a model's identity its own local id."""


@dataclass(frozen=True, slots=True)
class IdentityConfig:
    """Per-model-type identity settings.

    Attached to a Model subclass as the ``identity_config`` class attribute.
    """

    identity_key: str = LOCAL_ID_KEY
    """Name of the attribute holding the server identity."""

    set_identity_from_response: bool = False
    """Extract the identity from the save response when a new model is saved."""


def new_local_id() -> str:
    """Allocate a process-unique local id.

    Ids are random (uuid4) and never reused, so a stale local id can never
    resolve to a different model.

    Returns:
        Opaque hex string.
    """
    return uuid.uuid4().hex


def has_identity(value: Any) -> bool:
    """Check if an identity value is present.

    ``None`` and empty strings count as absent; ``0`` is a valid identity.

    Args:
        value: Identity value to check.

    Returns:
        True if the value can be indexed.
    """
    return value is not None and value != ""
