"""Model identity functionality: local ids and identity configuration."""

from modelsync.core.identity.models import (
    LOCAL_ID_KEY,
    IdentityConfig,
    has_identity,
    new_local_id,
)

__all__ = [
    "LOCAL_ID_KEY",
    "IdentityConfig",
    "has_identity",
    "new_local_id",
]
