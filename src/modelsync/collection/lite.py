"""LiteCollection: ordered, dual-indexed set of models.

The index keeps the insertion order of its models plus two lookup maps: by
local id (always) and by identity (when the model has one). A lite
collection does not claim ownership of its models, so one model may belong
to any number of lite collections at once.

Usage:
    notes = LiteCollection(Note.from_record)
    notes.add([first, second])
    notes.unshift(third)
    notes.get_by_id("server-id-or-local-id")
    notes.remove(first.local_id)
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Iterable, Iterator, Mapping, Sequence
from typing import Any, ClassVar, Generic, TypeVar, cast

from modelsync.collection.config import (
    CollectionConfig,
    RemoveConfig,
    ResetConfig,
    build_collection_config,
    merge_config,
)
from modelsync.core.errors import NotAModelError, OutOfBoundsError, ValidationError
from modelsync.core.identity import has_identity
from modelsync.core.model import Model
from modelsync.core.observe import reaction
from modelsync.core.types import Disposer, FactoryFn, InsertPosition, RawRecord

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=Model)

type Needle = Any
"""A local id, an identity value, or a model instance."""


def as_list(items: Any) -> list[Any]:
    """Wrap a single item in a list; copy lists, tuples and other iterables."""
    if isinstance(items, (list, tuple)):
        return list(items)
    if isinstance(items, Model) or isinstance(items, (str, bytes)):
        return [items]
    if isinstance(items, Iterable):
        return list(items)
    return [items]


class LiteCollection(Generic[M]):
    """Ordered model index with lookup by local id and by identity.

    Invariants, after every mutating call:
    - at most one model per local id
    - at most one model per non-empty identity
    - both maps reference exactly the models in the sequence

    Args:
        factory: Builds a model from a raw record (sync or async).
        config: Collection defaults, as a CollectionConfig or a mapping of
            sections.
    """

    _lite: ClassVar[bool] = True

    def __init__(
        self,
        factory: FactoryFn[M],
        config: CollectionConfig | Mapping[str, Any] | None = None,
    ) -> None:
        self._factory = factory
        self._config = build_collection_config(config)
        self._models: list[M] = []
        self._model_by_local_id: dict[str, M] = {}
        self._model_by_identity: dict[Any, M] = {}
        self._identity_disposers: dict[str, Disposer] = {}

    def get_config(self) -> CollectionConfig:
        """Effective collection-level configuration."""
        return self._config

    # --- Read access ---

    @property
    def models(self) -> tuple[M, ...]:
        return tuple(self._models)

    @property
    def new_models(self) -> list[M]:
        return [model for model in self._models if model.is_new]

    @property
    def deleted_models(self) -> list[M]:
        return [model for model in self._models if model.is_deleted]

    @property
    def saving_models(self) -> list[M]:
        return [model for model in self._models if model.is_saving]

    @property
    def deleting_models(self) -> list[M]:
        return [model for model in self._models if model.is_deleting]

    @property
    def syncing_models(self) -> list[M]:
        return self.deleting_models + self.saving_models

    def __len__(self) -> int:
        return len(self._models)

    def __iter__(self) -> Iterator[M]:
        return iter(list(self._models))

    def __contains__(self, needle: object) -> bool:
        return self.resolve(needle) is not None

    def resolve(self, needle: Needle) -> M | None:
        """Find a model by identity first, then by local id.

        Args:
            needle: Identity value, local id, or a model instance.

        Returns:
            The indexed model, or None.
        """
        if isinstance(needle, Model):
            model = self._model_by_local_id.get(needle.local_id)
            return model if model is needle else None
        try:
            model = self._model_by_identity.get(needle)
        except TypeError:  # unhashable needle
            return None
        if model is not None:
            return model
        if isinstance(needle, str):
            return self._model_by_local_id.get(needle)
        return None

    def resolve_many(self, needles: Iterable[Needle]) -> list[M]:
        """Resolve each needle, dropping the ones that do not match."""
        resolved = []
        for needle in needles:
            model = self.resolve(needle)
            if model is not None:
                resolved.append(model)
        return resolved

    def get_by_id(self, needle: Needle) -> M | None:
        return self.resolve(needle)

    def get_by_ids(self, needles: Iterable[Needle]) -> list[M]:
        return self.resolve_many(needles)

    def get_by_identity(self, value: Any) -> M | None:
        return self._model_by_identity.get(value)

    def get_by_local_id(self, local_id: str) -> M | None:
        return self._model_by_local_id.get(local_id)

    # --- Adding ---

    def add(self, models: M | Sequence[M], position: InsertPosition | None = None) -> list[M]:
        """Add one or many models.

        Models whose local id or identity is already indexed are skipped.

        Args:
            models: A model or a sequence of models.
            position: ``"start"``, ``"end"`` or an index in ``[0, len]``.
                Defaults to the collection's ``add.insert_position``.

        Returns:
            The models that were actually added, in insertion order.

        Raises:
            NotAModelError: If an item is not a Model.
            OutOfBoundsError: If an integer position is out of range.
            AlreadyOwnedError: If a model belongs to another non-lite collection.
        """
        if position is None:
            position = self._config.add.insert_position
        return self._add_to_collection(as_list(models), position)

    def push(self, models: M | Sequence[M]) -> list[M]:
        return self._add_to_collection(as_list(models), "end")

    def unshift(self, models: M | Sequence[M]) -> list[M]:
        return self._add_to_collection(as_list(models), "start")

    def add_at_index(self, models: M | Sequence[M], index: int) -> list[M]:
        return self._add_to_collection(as_list(models), index)

    def _add_to_collection(self, models: list[Any], position: InsertPosition) -> list[M]:
        accepted: list[M] = []
        batch_local_ids: set[str] = set()
        batch_identities: set[Any] = set()

        for model in models:
            self._assert_is_model(model)
            identity = model.identity
            if not self._not_present(model):
                continue
            if model.local_id in batch_local_ids:
                continue
            if has_identity(identity) and identity in batch_identities:
                continue
            model._check_can_join(self, self._lite)
            batch_local_ids.add(model.local_id)
            if has_identity(identity):
                batch_identities.add(identity)
            accepted.append(cast(M, model))

        index = self._resolve_position(position)
        self._models[index:index] = accepted

        for model in accepted:
            self._start_tracking(model)
            self._notify_added(model)
            self.on_added(model)

        if accepted:
            logger.debug("Added %d model(s) to %s", len(accepted), type(self).__name__)
        return accepted

    def _resolve_position(self, position: InsertPosition) -> int:
        if position == "end":
            return len(self._models)
        if position == "start":
            return 0
        if isinstance(position, int) and not isinstance(position, bool):
            if position < 0 or position > len(self._models):
                raise OutOfBoundsError("insertion index out of bounds")
            return position
        raise ValidationError(f"Invalid insert position: {position!r}")

    def _assert_is_model(self, model: object) -> None:
        if not isinstance(model, Model):
            raise NotAModelError("model is not instance of Model class")

    def _not_present(self, model: M) -> bool:
        if model.local_id in self._model_by_local_id:
            return False
        identity = model.identity
        return not (has_identity(identity) and identity in self._model_by_identity)

    # --- Tracking ---

    def _start_tracking(self, model: M) -> None:
        self._model_by_local_id[model.local_id] = model
        identity = model.identity
        if has_identity(identity):
            self._model_by_identity[identity] = model

        def reindex(new_identity: Any, old_identity: Any) -> None:
            if has_identity(old_identity) and self._model_by_identity.get(old_identity) is model:
                del self._model_by_identity[old_identity]
            if has_identity(new_identity):
                current = self._model_by_identity.get(new_identity)
                if current is not None and current is not model:
                    logger.warning(
                        "Identity %r reassigned from %r to %r", new_identity, current, model
                    )
                self._model_by_identity[new_identity] = model

        self._identity_disposers[model.local_id] = reaction(model, lambda: model.identity, reindex)

    def _stop_tracking(self, model: M) -> None:
        self._model_by_local_id.pop(model.local_id, None)
        identity = model.identity
        if has_identity(identity) and self._model_by_identity.get(identity) is model:
            del self._model_by_identity[identity]
        dispose = self._identity_disposers.pop(model.local_id, None)
        if dispose is not None:
            dispose()

    def _notify_added(self, model: M) -> None:
        model._on_added(self, self._lite)

    def _notify_removed(self, model: M) -> None:
        model._on_removed(self, self._lite)

    # --- Removing ---

    def remove(
        self,
        needles: Needle | Sequence[Needle],
        config: RemoveConfig | Mapping[str, Any] | None = None,
    ) -> list[M]:
        """Remove models resolved by identity, local id, or instance.

        Args:
            needles: One needle or a sequence of needles. Unresolved ones are
                ignored.
            config: ``destroy`` removed models or not.

        Returns:
            Removed models, in collection order.
        """
        remove_config = merge_config(self._config.remove, config)
        models = self.resolve_many(as_list(needles))
        return self._remove_from_collection(models, destroy=remove_config.destroy)

    def pop(self, config: RemoveConfig | Mapping[str, Any] | None = None) -> M | None:
        if not self._models:
            return None
        return self._remove_one(self._models[-1], config)

    def shift(self, config: RemoveConfig | Mapping[str, Any] | None = None) -> M | None:
        if not self._models:
            return None
        return self._remove_one(self._models[0], config)

    def remove_at_index(
        self, index: int, config: RemoveConfig | Mapping[str, Any] | None = None
    ) -> M | None:
        if index < 0 or index >= len(self._models):
            return None
        return self._remove_one(self._models[index], config)

    def _remove_one(self, model: M, config: RemoveConfig | Mapping[str, Any] | None) -> M | None:
        remove_config = merge_config(self._config.remove, config)
        removed = self._remove_from_collection([model], destroy=remove_config.destroy)
        return removed[0] if removed else None

    def _remove_from_collection(self, models: Iterable[M], destroy: bool = False) -> list[M]:
        local_ids = {model.local_id for model in models}
        if not local_ids:
            return []

        removed: list[M] = []
        kept: list[M] = []
        for model in self._models:
            if model.local_id in local_ids:
                removed.append(model)
            else:
                kept.append(model)
        self._models = kept

        for model in removed:
            self._stop_tracking(model)
            self._notify_removed(model)
            if destroy:
                model.destroy()
            self.on_removed(model)

        if removed:
            logger.debug("Removed %d model(s) from %s", len(removed), type(self).__name__)
        return removed

    # --- Creation and reset ---

    async def create(self, data: RawRecord) -> M:
        """Build a model through the factory and initialize it once.

        Args:
            data: Raw record handed to the factory.

        Returns:
            Initialized model, not yet added to the collection.

        Raises:
            NotAModelError: If the factory did not return a Model.
        """
        model = self._factory(data)
        if inspect.isawaitable(model):
            model = await model
        self._assert_is_model(model)
        model = cast(M, model)
        model.init()
        return model

    async def _build_models(self, records: Iterable[RawRecord]) -> list[M]:
        models = []
        for record in records:
            data = self.on_model_create_data(record)
            if not data:
                continue
            models.append(await self.create(data))
        return models

    async def reset(
        self,
        data: Iterable[RawRecord] | None = None,
        config: ResetConfig | Mapping[str, Any] | None = None,
    ) -> tuple[list[M], list[M]]:
        """Replace every model, optionally building new ones from raw records.

        Args:
            data: Raw records for the new models. None just empties the collection.
            config: ``destroy`` the dropped models or not.

        Returns:
            ``(added, removed)``.
        """
        reset_config = merge_config(self._config.reset, config)
        added: list[M] = []
        new_models = await self._build_models(data) if data is not None else []

        removed = self._remove_from_collection(list(self._models), destroy=reset_config.destroy)
        if new_models:
            added = self._add_to_collection(new_models, "end")

        self.on_reset(added, removed)
        return added, removed

    # --- Serialization ---

    def serialize(self) -> dict[str, Any]:
        """Payloads of every model (falsy ones skipped) plus ``on_serialize()``."""
        payloads = [payload for model in self._models if (payload := model.payload)]
        return {"models": payloads, **self.on_serialize()}

    # --- Teardown ---

    def destroy(self) -> None:
        """Detach every model. Lite collections do not destroy their models."""
        self.on_destroy()
        self._remove_from_collection(list(self._models), destroy=False)

    # --- Hooks ---

    def on_model_create_data(self, data: RawRecord) -> RawRecord | None:
        """Transform a raw record before construction. Return a falsy value to skip it."""
        return data

    def on_added(self, model: M) -> None:
        pass

    def on_removed(self, model: M) -> None:
        pass

    def on_reset(self, added: list[M], removed: list[M]) -> None:
        pass

    def on_serialize(self) -> dict[str, Any]:
        return {}

    def on_destroy(self) -> None:
        pass
