"""AutosaveCollection: save models automatically when their payload changes.

Every subscribed model is observed through a reaction on ``(model, payload)``.
Each change schedules ``auto_save()``, which by default runs
``collection.save(model)`` as an asyncio task. With ``debounce_ms`` set,
rapid changes collapse into one trailing call carrying the latest payload.

Usage:
    collection = AutosaveCollection(
        Note.from_record,
        transport,
        {"autosave": {"enabled": True, "debounce_ms": 300}},
    )
    collection.add(note)
    note.title = "edited"  # saved ~300ms after the last edit
    await collection.drain_auto_saves()
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from modelsync.collection.collection import Collection
from modelsync.collection.config import CollectionConfig
from modelsync.collection.lite import as_list
from modelsync.core.model import Model
from modelsync.core.observe import Debounced, Reaction
from modelsync.core.types import Disposer, FactoryFn, InsertPosition, Payload
from modelsync.transport.protocol import Transport

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=Model)


@dataclass(frozen=True, slots=True)
class AutoSaveEvent(Generic[M]):
    """Value observed for autosave. Equal when the payloads are equal."""

    model: M
    payload: Payload


class AutosaveCollection(Collection[M]):
    """Collection that saves its models whenever they change.

    Autosave runs for every model added while ``autosave.enabled`` is set, or
    for the models passed to ``start_auto_save()``. Subscriptions end when a
    model is removed or the collection is destroyed.
    """

    def __init__(
        self,
        factory: FactoryFn[M],
        transport: Transport[M],
        config: CollectionConfig | Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(factory, transport, config)
        self._autosave_disposers: dict[str, Disposer] = {}
        self._autosave_tasks: set[asyncio.Task[Any]] = set()

    def _add_to_collection(self, models: list[Any], position: InsertPosition) -> list[M]:
        added = super()._add_to_collection(models, position)
        if self._config.autosave.enabled:
            self.start_auto_save(added)
        return added

    def _remove_from_collection(self, models: Iterable[M], destroy: bool = False) -> list[M]:
        # stopped as one batch, before removal hooks and destroy() run
        present = [m for m in models if self._model_by_local_id.get(m.local_id) is m]
        self.stop_auto_save(present)
        return super()._remove_from_collection(present, destroy)

    def autosave_enabled(self, local_id: str) -> bool:
        """Check if autosave is running for the model with this local id."""
        return local_id in self._autosave_disposers

    def start_auto_save(self, models: M | Sequence[M] | None = None) -> list[M]:
        """Start autosave for the given models, or for every model when None.

        Models that already autosave are skipped. ``on_start_auto_save`` is
        called once with the started models, and not at all if none started.

        Returns:
            Models whose autosave was started by this call.
        """
        targets = list(self._models) if models is None else as_list(models)
        started: list[M] = []
        for model in targets:
            if model.local_id in self._autosave_disposers:
                continue
            self._autosave_disposers[model.local_id] = self._observe_payload(model)
            started.append(model)

        if started:
            logger.debug("Autosave started for %d model(s)", len(started))
            self.on_start_auto_save(started)
        return started

    def stop_auto_save(self, models: M | Sequence[M] | None = None) -> list[M]:
        """Stop autosave for the given models, or for every model when None.

        Models without autosave are skipped. A pending debounced save is
        dropped. ``on_stop_auto_save`` is called once with the stopped models,
        and not at all if none stopped.

        Returns:
            Models whose autosave was stopped by this call.
        """
        targets = list(self._models) if models is None else as_list(models)
        stopped: list[M] = []
        for model in targets:
            dispose = self._autosave_disposers.pop(model.local_id, None)
            if dispose is None:
                continue
            dispose()
            stopped.append(model)

        if stopped:
            logger.debug("Autosave stopped for %d model(s)", len(stopped))
            self.on_stop_auto_save(stopped)
        return stopped

    def _observe_payload(self, model: M) -> Disposer:
        debounce_ms = self._config.autosave.debounce_ms
        debounced: Debounced[AutoSaveEvent[M]] | None = None
        if debounce_ms > 0:
            debounced = Debounced(self.auto_save, debounce_ms / 1000)

        observer = Reaction(
            model,
            lambda: AutoSaveEvent(model=model, payload=model.payload),
            debounced if debounced is not None else self.auto_save,
        )

        def dispose() -> None:
            observer.dispose()
            if debounced is not None:
                debounced.cancel()

        return dispose

    def auto_save(self, event: AutoSaveEvent[M], previous: AutoSaveEvent[M]) -> None:
        """Called on every (debounced) payload change. Schedules a save.

        Override to change what a change does; the default needs a running
        event loop.
        """
        loop = asyncio.get_running_loop()
        logger.debug("Autosave scheduled for %r", event.model)
        task = loop.create_task(self.save(event.model))
        self._autosave_tasks.add(task)
        task.add_done_callback(self._autosave_tasks.discard)

    async def drain_auto_saves(self) -> None:
        """Wait for every autosave task started so far to finish."""
        while self._autosave_tasks:
            await asyncio.gather(*list(self._autosave_tasks))

    def destroy(self) -> None:
        """Stop autosave for every model, then remove and destroy them."""
        self.stop_auto_save()
        super().destroy()

    # --- Hooks ---

    def on_start_auto_save(self, models: list[M]) -> None:
        pass

    def on_stop_auto_save(self, models: list[M]) -> None:
        pass
