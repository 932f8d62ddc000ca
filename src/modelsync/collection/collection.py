"""Collection: a LiteCollection synchronized with a Transport.

Adds asynchronous save/delete/load on top of the index. Overlapping calls on
the same model are resolved with per-call tokens instead of locks: only the
call whose token is still recorded as current may finalize the model's
flags, and only it may clear its own entry from the saving set.

Usage:
    collection = Collection(Note.from_record, InMemoryTransport())

    result = await collection.save(Note("draft"))
    if result.ok:
        print(result.model.identity)

    loaded = await collection.load({"duplicate_model_strategy": "KEEP_OLD"})
    await collection.delete(loaded.added[0].identity)
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, ClassVar, Generic, TypeVar

from modelsync.collection.config import (
    CollectionConfig,
    CompareResult,
    DeleteConfig,
    DuplicateModelStrategy,
    LoadConfig,
    LoadStatus,
    SaveConfig,
    merge_config,
)
from modelsync.collection.lite import LiteCollection, Needle
from modelsync.collection.result import DeleteResult, LoadResult, SaveResult
from modelsync.core.errors import (
    AlreadyDeletedError,
    AlreadyDeletingError,
    IdentityExtractionError,
    InvalidCompareResultError,
    NonUniqueIdentityError,
    NotInCollectionError,
    StateError,
)
from modelsync.core.identity import has_identity
from modelsync.core.model import Model, response_data
from modelsync.core.types import FactoryFn, RawRecord
from modelsync.transport.protocol import Transport

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=Model)


@dataclass(slots=True)
class SaveTicket(Generic[M]):
    """Entry of the saving set: the model and the token of its newest save."""

    token: object
    model: M


class Collection(LiteCollection[M]):
    """Model index that owns its models and syncs them through a transport.

    A model can belong to only one (non-lite) Collection at a time.

    Args:
        factory: Builds a model from a raw record (sync or async).
        transport: Persistence backend implementing load/save/delete.
        config: Collection defaults, as a CollectionConfig or a mapping of
            sections.
    """

    _lite: ClassVar[bool] = False

    def __init__(
        self,
        factory: FactoryFn[M],
        transport: Transport[M],
        config: CollectionConfig | Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(factory, config)
        self._transport = transport
        self._saving: dict[str, SaveTicket[M]] = {}
        self._deleting: dict[str, M] = {}
        self.load_status = LoadStatus.IDLE
        self.load_error: Any = None

    def get_transport(self) -> Transport[M]:
        return self._transport

    @property
    def saving_models(self) -> list[M]:
        """Models with a save in flight, including ones not yet added."""
        return [ticket.model for ticket in self._saving.values()]

    @property
    def deleting_models(self) -> list[M]:
        """Models with a delete in flight, including ones already removed."""
        return list(self._deleting.values())

    # --- Save ---

    async def save(
        self,
        model: M | RawRecord,
        config: SaveConfig | Mapping[str, Any] | None = None,
        transport_config: Any = None,
    ) -> SaveResult[M]:
        """Persist a model through the transport.

        Args:
            model: Model to save, or a raw record to build one from through
                the factory.
            config: Overrides for the collection's save config.
            transport_config: Passed through to ``transport.save``.

        Returns:
            SaveResult with ``response`` and ``model``, or with ``error``.

        Raises:
            NotAModelError: If the factory does not return a Model.
            AlreadyOwnedError: If the model belongs to another collection.
        """
        save_config = merge_config(self._config.save, config)
        if not isinstance(model, Model):
            model = await self.create(model)

        if save_config.add_immediately:
            self._add_to_collection([model], save_config.insert_position)
        else:
            model._check_can_join(self, self._lite)

        token = object()
        self._saving[model.local_id] = SaveTicket(token=token, model=model)
        payload = model.payload
        try:
            logger.debug("Saving %r", model)
            self.on_save_start(model, save_config, transport_config)
            model._on_save_start(save_config, transport_config, token)

            response = await self._transport.save(model, transport_config)
            response = self.parse_save_response(response, save_config, transport_config)

            if not save_config.add_immediately:
                self._add_to_collection([model], save_config.insert_position)

            self.on_save_success(model, response, save_config, transport_config)
            model._on_save_success(response, save_config, transport_config, payload, token)
            return SaveResult(response=response, model=model)
        except Exception as error:
            logger.warning("Save failed for %r: %s", model, error)
            if (
                not isinstance(error, IdentityExtractionError)
                and not save_config.add_immediately
                and save_config.add_on_error
            ):
                self._add_to_collection([model], save_config.insert_position)

            self.on_save_error(model, error, save_config, transport_config)
            model._on_save_error(error, save_config, transport_config, token, payload)
            return SaveResult(error=error)
        finally:
            ticket = self._saving.get(model.local_id)
            if ticket is not None and ticket.token is token:
                del self._saving[model.local_id]

    # --- Delete ---

    async def delete(
        self,
        needle: Needle,
        config: DeleteConfig | Mapping[str, Any] | None = None,
        transport_config: Any = None,
    ) -> DeleteResult[M]:
        """Delete a model through the transport.

        State pre-conditions (not in collection, already deleted, already
        deleting) are returned as ``error`` without calling the transport.

        Args:
            needle: Identity, local id, or model instance.
            config: Overrides for the collection's delete config.
            transport_config: Passed through to ``transport.delete``.

        Returns:
            DeleteResult with ``response`` and ``model``, or with ``error``.
        """
        delete_config = merge_config(self._config.delete, config)
        model = self.resolve(needle)
        try:
            model = self._assert_can_be_deleted(model)
        except StateError as error:
            logger.debug("Delete rejected for %r: %s", needle, error)
            return DeleteResult(error=error)

        if delete_config.remove and delete_config.remove_immediately:
            self._remove_from_collection([model], destroy=delete_config.destroy_on_removal)

        try:
            self._deleting[model.local_id] = model
            logger.debug("Deleting %r", model)
            self.on_delete_start(model, delete_config, transport_config)
            model._on_delete_start(delete_config, transport_config)

            response = await self._transport.delete(model, transport_config)
            response = self.parse_delete_response(response, delete_config, transport_config)

            if delete_config.remove and not delete_config.remove_immediately:
                self._remove_from_collection([model], destroy=delete_config.destroy_on_removal)

            self.on_delete_success(model, response, delete_config, transport_config)
            model._on_delete_success(response, delete_config, transport_config)
            return DeleteResult(response=response, model=model)
        except Exception as error:
            logger.warning("Delete failed for %r: %s", model, error)
            if (
                delete_config.remove
                and not delete_config.remove_immediately
                and delete_config.remove_on_error
            ):
                self._remove_from_collection([model], destroy=delete_config.destroy_on_removal)

            self.on_delete_error(model, error, delete_config, transport_config)
            model._on_delete_error(error, delete_config, transport_config)
            return DeleteResult(error=error)
        finally:
            self._deleting.pop(model.local_id, None)

    def _assert_can_be_deleted(self, model: M | None) -> M:
        if model is None:
            raise NotInCollectionError()
        if model.is_deleted:
            raise AlreadyDeletedError()
        if model.is_deleting:
            raise AlreadyDeletingError()
        return model

    # --- Load ---

    async def load(
        self,
        config: LoadConfig | Mapping[str, Any] | None = None,
        transport_config: Any = None,
    ) -> LoadResult[M]:
        """Load a batch from the transport and merge it into the collection.

        Args:
            config: Overrides for the collection's load config.
            transport_config: Passed through to ``transport.load``.

        Returns:
            LoadResult with ``response``, ``added`` and ``removed``, or with
            ``error``. A reconciliation failure leaves the collection as it
            was before the call.
        """
        load_config = merge_config(self._config.load, config)
        self.load_error = None
        try:
            self.load_status = LoadStatus.PENDING
            logger.debug("Loading %s", type(self).__name__)
            self.on_load_start(load_config, transport_config)

            response = await self._transport.load(transport_config)
            response = self.parse_load_response(response, load_config, transport_config)
            self.load_status = LoadStatus.RESOLVED
            records = response_data(response) or []

            if load_config.reset:
                added, removed = await self.reset(records, {"destroy": load_config.destroy_on_reset})
            else:
                to_add, to_remove = await self._reconcile(records, load_config)
                removed = self._remove_from_collection(
                    to_remove, destroy=load_config.destroy_on_removal
                )
                added = self._add_to_collection(to_add, load_config.insert_position)

            logger.debug("Loaded: %d added, %d removed", len(added), len(removed))
            self.on_load_success(response, added, removed, load_config, transport_config)
            return LoadResult(response=response, added=added, removed=removed)
        except Exception as error:
            logger.warning("Load failed for %s: %s", type(self).__name__, error)
            self.load_error = error
            self.load_status = LoadStatus.REJECTED
            self.on_load_error(error, load_config, transport_config)
            return LoadResult(error=error)

    async def _reconcile(
        self, records: list[RawRecord], load_config: LoadConfig
    ) -> tuple[list[M], list[M]]:
        """Decide which loaded models to add and which indexed ones to drop.

        Nothing is mutated here; an exception aborts the whole batch.

        Returns:
            ``(to_add, to_remove)``.
        """
        strategy = DuplicateModelStrategy(load_config.duplicate_model_strategy)
        to_add: list[M] = []
        to_remove: list[M] = []

        for record in records:
            data = self.on_model_create_data(record)
            if not data:
                continue
            candidate = await self.create(data)

            old_model = self._find_duplicate(candidate)
            if old_model is None:
                to_add.append(candidate)
                continue
            if old_model is candidate:
                # factory handed back an already indexed instance
                continue

            if strategy is DuplicateModelStrategy.KEEP_NEW:
                to_remove.append(old_model)
                to_add.append(candidate)
            elif strategy is DuplicateModelStrategy.COMPARE:
                decision = self._compare(load_config, candidate, old_model)
                if decision is CompareResult.KEEP_NEW:
                    to_remove.append(old_model)
                    to_add.append(candidate)
                elif decision is CompareResult.KEEP_BOTH:
                    if not self._not_present(candidate):
                        raise NonUniqueIdentityError()
                    to_add.append(candidate)
            # KEEP_OLD: the candidate is discarded

        return to_add, to_remove

    def _find_duplicate(self, candidate: M) -> M | None:
        identity = candidate.identity
        if has_identity(identity):
            model = self._model_by_identity.get(identity)
            if model is not None:
                return model
        return self._model_by_local_id.get(candidate.local_id)

    def _compare(self, load_config: LoadConfig, candidate: M, old_model: M) -> CompareResult:
        result = load_config.compare_fn(candidate, old_model)
        try:
            return CompareResult(result)
        except ValueError:
            raise InvalidCompareResultError(f"Invalid compare result: {result!r}") from None

    # --- Teardown ---

    def destroy(self) -> None:
        """Remove and destroy every model."""
        self.on_destroy()
        self._remove_from_collection(list(self._models), destroy=True)

    # --- Hooks ---

    def parse_save_response(
        self, response: Any, config: SaveConfig, transport_config: Any
    ) -> Any:
        """Transform a save response before it reaches the model. Identity by default."""
        return response

    def parse_delete_response(
        self, response: Any, config: DeleteConfig, transport_config: Any
    ) -> Any:
        return response

    def parse_load_response(self, response: Any, config: LoadConfig, transport_config: Any) -> Any:
        """Transform a load response before its ``data`` is read. Identity by default."""
        return response

    def on_save_start(self, model: M, config: SaveConfig, transport_config: Any) -> None:
        pass

    def on_save_success(
        self, model: M, response: Any, config: SaveConfig, transport_config: Any
    ) -> None:
        pass

    def on_save_error(self, model: M, error: Any, config: SaveConfig, transport_config: Any) -> None:
        pass

    def on_delete_start(self, model: M, config: DeleteConfig, transport_config: Any) -> None:
        pass

    def on_delete_success(
        self, model: M, response: Any, config: DeleteConfig, transport_config: Any
    ) -> None:
        pass

    def on_delete_error(
        self, model: M, error: Any, config: DeleteConfig, transport_config: Any
    ) -> None:
        pass

    def on_load_start(self, config: LoadConfig, transport_config: Any) -> None:
        pass

    def on_load_success(
        self,
        response: Any,
        added: list[M],
        removed: list[M],
        config: LoadConfig,
        transport_config: Any,
    ) -> None:
        pass

    def on_load_error(self, error: Any, config: LoadConfig, transport_config: Any) -> None:
        pass
