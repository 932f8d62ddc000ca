"""Collection configuration models and enums.

Each operation has its own config dataclass carrying the default values.
Per-call configs are either a full instance (used as is) or a mapping of
overrides merged over the collection-level value.

Usage:
    collection = Collection(factory, transport, CollectionConfig(
        save=SaveConfig(add_immediately=False),
        load=LoadConfig(duplicate_model_strategy=DuplicateModelStrategy.KEEP_OLD),
    ))
    await collection.save(model, {"insert_position": "start"})
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any, TypeVar

from modelsync.core.types import InsertPosition

if TYPE_CHECKING:
    from modelsync.core.model import Model

ConfigT = TypeVar("ConfigT")


class DuplicateModelStrategy(StrEnum):
    """What load does when a loaded record collides with an indexed model."""

    KEEP_NEW = "KEEP_NEW"
    """Replace the indexed model with the loaded one. Default."""

    KEEP_OLD = "KEEP_OLD"
    """Discard the loaded record."""

    COMPARE = "COMPARE"
    """Ask ``LoadConfig.compare_fn`` to decide per collision."""


class CompareResult(StrEnum):
    """Decision returned by a ``compare_fn``."""

    KEEP_NEW = "KEEP_NEW"
    KEEP_OLD = "KEEP_OLD"
    KEEP_BOTH = "KEEP_BOTH"
    """Keep both; the candidate must have been given a fresh identity."""


class LoadStatus(StrEnum):
    """Status of the most recent collection load."""

    IDLE = "IDLE"
    PENDING = "PENDING"
    RESOLVED = "RESOLVED"
    REJECTED = "REJECTED"


type CompareFn = Callable[[Model, Model], CompareResult | str]
"""Signature: (candidate, old_model) -> CompareResult"""


def keep_new(_candidate: Model, _old: Model) -> CompareResult:
    """Default compare function: always prefer the loaded model."""
    return CompareResult.KEEP_NEW


@dataclass(slots=True)
class AddConfig:
    insert_position: InsertPosition = "end"


@dataclass(slots=True)
class RemoveConfig:
    destroy: bool = False
    """Call ``destroy()`` on every removed model."""


@dataclass(slots=True)
class ResetConfig:
    destroy: bool = False
    """Call ``destroy()`` on every model dropped by the reset."""


@dataclass(slots=True)
class SaveConfig:
    insert_position: InsertPosition = "end"
    """Where the model goes if the save adds it to the collection."""

    add_immediately: bool = True
    """Add before the transport call, so the model is visible while in flight."""

    add_on_error: bool = True
    """When not added immediately, still add the model if the save fails."""


@dataclass(slots=True)
class DeleteConfig:
    remove: bool = True
    """Remove the model from the collection at all."""

    remove_immediately: bool = True
    """Remove before the transport call instead of after it succeeds."""

    remove_on_error: bool = False
    """When not removed immediately, still remove the model if the delete fails."""

    destroy_on_removal: bool = True
    """Destroy the model when it is removed."""


@dataclass(slots=True)
class LoadConfig:
    duplicate_model_strategy: DuplicateModelStrategy = DuplicateModelStrategy.KEEP_NEW
    compare_fn: CompareFn = keep_new
    insert_position: InsertPosition = "end"
    destroy_on_removal: bool = True
    """Destroy models replaced by loaded ones."""

    reset: bool = False
    """Replace the whole collection with the loaded batch instead of reconciling."""

    destroy_on_reset: bool = False


@dataclass(slots=True)
class AutoSaveConfig:
    enabled: bool = False
    """Start autosave for every model as it is added."""

    debounce_ms: int = 0
    """Trailing-edge debounce window. 0 saves on every change."""


@dataclass(slots=True)
class CollectionConfig:
    """Collection-level defaults for every operation."""

    add: AddConfig = field(default_factory=AddConfig)
    remove: RemoveConfig = field(default_factory=RemoveConfig)
    reset: ResetConfig = field(default_factory=ResetConfig)
    save: SaveConfig = field(default_factory=SaveConfig)
    delete: DeleteConfig = field(default_factory=DeleteConfig)
    load: LoadConfig = field(default_factory=LoadConfig)
    autosave: AutoSaveConfig = field(default_factory=AutoSaveConfig)


def merge_config(base: ConfigT, override: ConfigT | Mapping[str, Any] | None) -> ConfigT:
    """Merge a per-call config over a collection-level one.

    Args:
        base: Collection-level config instance.
        override: None, a full instance of the same type, or a mapping of
            field overrides.

    Returns:
        Effective config. ``base`` is never mutated.

    Raises:
        TypeError: If the override has the wrong type or unknown fields.
    """
    if override is None:
        return base
    if isinstance(override, type(base)):
        return override
    if isinstance(override, Mapping):
        return dataclasses.replace(base, **override)  # type: ignore[type-var]
    raise TypeError(f"Expected {type(base).__name__} or mapping, got {type(override).__name__}")


def build_collection_config(
    config: CollectionConfig | Mapping[str, Any] | None,
) -> CollectionConfig:
    """Normalize constructor input into a CollectionConfig.

    Mappings are keyed by section (``"save"``, ``"load"``, ...) and each
    section may itself be an instance or a mapping of overrides.
    """
    if config is None:
        return CollectionConfig()
    if isinstance(config, CollectionConfig):
        return config
    defaults = CollectionConfig()
    sections: dict[str, Any] = {}
    for name, value in config.items():
        if not hasattr(defaults, name):
            raise TypeError(f"Unknown collection config section: {name!r}")
        sections[name] = merge_config(getattr(defaults, name), value)
    return dataclasses.replace(defaults, **sections)
