"""Model collections: the lite index, the synced collection, and autosave."""

from modelsync.collection.autosave import AutoSaveEvent, AutosaveCollection
from modelsync.collection.collection import Collection
from modelsync.collection.config import (
    AddConfig,
    AutoSaveConfig,
    CollectionConfig,
    CompareFn,
    CompareResult,
    DeleteConfig,
    DuplicateModelStrategy,
    LoadConfig,
    LoadStatus,
    RemoveConfig,
    ResetConfig,
    SaveConfig,
    keep_new,
    merge_config,
)
from modelsync.collection.lite import LiteCollection
from modelsync.collection.result import DeleteResult, LoadResult, SaveResult, unwrap_result

__all__ = [
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
]
