"""Configuration module using Pydantic Settings.

Provides collection defaults with environment variable support.

Usage:
    from modelsync.config import SyncSettings

    settings = SyncSettings(autosave_debounce_ms=250)
    collection = AutosaveCollection(factory, transport, settings.to_collection_config())
"""

from modelsync.config.settings import SyncSettings

__all__ = [
    "SyncSettings",
]
