"""Configuration settings using Pydantic Settings.

Loads collection-level defaults from environment variables or a ``.env``
file, so deployments can tune sync behavior without code changes.

Usage:
    from modelsync.config import SyncSettings

    # Load from environment variables (MODELSYNC_*)
    settings = SyncSettings()

    # Or override with explicit values
    settings = SyncSettings(duplicate_model_strategy="KEEP_OLD")
    config = settings.to_collection_config()
"""

from __future__ import annotations

from typing import Literal

from modelsync.collection.config import (
    AddConfig,
    AutoSaveConfig,
    CollectionConfig,
    DeleteConfig,
    DuplicateModelStrategy,
    LoadConfig,
    SaveConfig,
)

try:
    from pydantic_settings import BaseSettings, SettingsConfigDict
except ImportError as e:
    raise ImportError(
        "pydantic-settings is required for config module. "
        "Install with: pip install modelsync[config]"
    ) from e


class SyncSettings(BaseSettings):  # type: ignore[misc]
    """Scalar collection defaults.

    Attributes:
        insert_position: Default position for add/save/load ("start" or "end").
        save_add_immediately: Add a saved model before the transport call.
        save_add_on_error: Add a model whose deferred save failed.
        delete_remove: Remove deleted models from the collection.
        delete_remove_immediately: Remove before the transport call.
        delete_remove_on_error: Remove a model whose deferred delete failed.
        delete_destroy_on_removal: Destroy models removed by delete.
        duplicate_model_strategy: KEEP_NEW, KEEP_OLD or COMPARE.
        load_destroy_on_removal: Destroy models replaced by load.
        load_reset: Replace the collection on every load.
        autosave_enabled: Autosave every added model.
        autosave_debounce_ms: Autosave debounce window in milliseconds.

    Environment Variables:
        MODELSYNC_INSERT_POSITION
        MODELSYNC_DUPLICATE_MODEL_STRATEGY
        MODELSYNC_AUTOSAVE_ENABLED
        MODELSYNC_AUTOSAVE_DEBOUNCE_MS
        (and MODELSYNC_<FIELD> for every other attribute)
    """

    model_config = SettingsConfigDict(
        env_prefix="MODELSYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    insert_position: Literal["start", "end"] = "end"
    save_add_immediately: bool = True
    save_add_on_error: bool = True
    delete_remove: bool = True
    delete_remove_immediately: bool = True
    delete_remove_on_error: bool = False
    delete_destroy_on_removal: bool = True
    duplicate_model_strategy: DuplicateModelStrategy = DuplicateModelStrategy.KEEP_NEW
    load_destroy_on_removal: bool = True
    load_reset: bool = False
    autosave_enabled: bool = False
    autosave_debounce_ms: int = 0

    def to_collection_config(self) -> CollectionConfig:
        """Build a CollectionConfig; sections not covered keep their defaults."""
        return CollectionConfig(
            add=AddConfig(insert_position=self.insert_position),
            save=SaveConfig(
                insert_position=self.insert_position,
                add_immediately=self.save_add_immediately,
                add_on_error=self.save_add_on_error,
            ),
            delete=DeleteConfig(
                remove=self.delete_remove,
                remove_immediately=self.delete_remove_immediately,
                remove_on_error=self.delete_remove_on_error,
                destroy_on_removal=self.delete_destroy_on_removal,
            ),
            load=LoadConfig(
                duplicate_model_strategy=self.duplicate_model_strategy,
                insert_position=self.insert_position,
                destroy_on_removal=self.load_destroy_on_removal,
                reset=self.load_reset,
            ),
            autosave=AutoSaveConfig(
                enabled=self.autosave_enabled,
                debounce_ms=self.autosave_debounce_ms,
            ),
        )
