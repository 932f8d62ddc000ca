"""modelsync: client-side model collections synchronized with a persistence backend.

Usage:
    from modelsync import Collection, IdentityConfig, InMemoryTransport, Model

    class Note(Model):
        identity_config = IdentityConfig(identity_key="id", set_identity_from_response=True)

        def __init__(self, title="", id=None):
            super().__init__()
            self.title = title
            self.id = id

        def serialize(self):
            return {"title": self.title, "id": self.id or ""}

    notes = Collection(lambda data: Note(**data), InMemoryTransport())
    result = await notes.save(Note("hello"))
    await notes.load()
"""

__version__ = "0.1.0"

# Collections
from modelsync.collection import (
    AddConfig,
    AutoSaveConfig,
    AutoSaveEvent,
    AutosaveCollection,
    Collection,
    CollectionConfig,
    CompareFn,
    CompareResult,
    DeleteConfig,
    DeleteResult,
    DuplicateModelStrategy,
    LiteCollection,
    LoadConfig,
    LoadResult,
    LoadStatus,
    RemoveConfig,
    ResetConfig,
    SaveConfig,
    SaveResult,
    keep_new,
    merge_config,
    unwrap_result,
)

# Core primitives
from modelsync.core import (
    LOCAL_ID_KEY,
    AlreadyDeletedError,
    AlreadyDeletingError,
    AlreadyOwnedError,
    CollectionNotPresentError,
    IdentityConfig,
    IdentityExtractionError,
    InvalidCompareResultError,
    Model,
    ModelSyncError,
    NonUniqueIdentityError,
    NotAModelError,
    NotInCollectionError,
    Observable,
    OutOfBoundsError,
    Reaction,
    ReconciliationError,
    StateError,
    TransportError,
    ValidationError,
    has_identity,
    new_local_id,
    reaction,
)

# Transports
from modelsync.transport import InMemoryTransport, StubTransport, Transport

__all__ = [
    "__version__",
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
    # Collections
    "LiteCollection",
    "Collection",
    "AutosaveCollection",
    "AutoSaveEvent",
    # Config
    "CollectionConfig",
    "AddConfig",
    "RemoveConfig",
    "ResetConfig",
    "SaveConfig",
    "DeleteConfig",
    "LoadConfig",
    "AutoSaveConfig",
    "DuplicateModelStrategy",
    "CompareResult",
    "CompareFn",
    "LoadStatus",
    "keep_new",
    "merge_config",
    # Results
    "SaveResult",
    "DeleteResult",
    "LoadResult",
    "unwrap_result",
    # Transports
    "Transport",
    "StubTransport",
    "InMemoryTransport",
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
