"""Core modelsync functionality: models, identity, change observation, errors.

Architecture Note:
    core/ holds the per-model building blocks. The stateful orchestration of
    many models against a transport lives in collection/.
"""

from modelsync.core.errors import (
    AlreadyDeletedError,
    AlreadyDeletingError,
    AlreadyOwnedError,
    CollectionNotPresentError,
    IdentityExtractionError,
    InvalidCompareResultError,
    ModelSyncError,
    NonUniqueIdentityError,
    NotAModelError,
    NotInCollectionError,
    OutOfBoundsError,
    ReconciliationError,
    StateError,
    TransportError,
    ValidationError,
)
from modelsync.core.identity import LOCAL_ID_KEY, IdentityConfig, has_identity, new_local_id
from modelsync.core.model import Model
from modelsync.core.observe import Observable, Reaction, reaction
from modelsync.core.types import Disposer, FactoryFn, InsertPosition, Payload, RawRecord

__all__ = [
    # Model
    "Model",
    "IdentityConfig",
    "LOCAL_ID_KEY",
    "has_identity",
    "new_local_id",
    # Observation
    "Observable",
    "Reaction",
    "reaction",
    # Types
    "Disposer",
    "FactoryFn",
    "InsertPosition",
    "Payload",
    "RawRecord",
    # Errors
    "ModelSyncError",
    "ValidationError",
    "NotAModelError",
    "OutOfBoundsError",
    "StateError",
    "NotInCollectionError",
    "AlreadyDeletedError",
    "AlreadyDeletingError",
    "AlreadyOwnedError",
    "CollectionNotPresentError",
    "IdentityExtractionError",
    "ReconciliationError",
    "NonUniqueIdentityError",
    "InvalidCompareResultError",
    "TransportError",
]
