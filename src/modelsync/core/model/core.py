"""Model: a single synchronizable domain object.

A model owns its identity, its dirty tracking, and its sync flags. The flags
are only ever changed by the owning collection through the ``_on_*``
notification methods; application code reads them.

Usage:
    class Note(Model):
        identity_config = IdentityConfig(identity_key="id", set_identity_from_response=True)

        def __init__(self, title: str = "", id: str | None = None):
            super().__init__()
            self.title = title
            self.id = id

        def serialize(self):
            return {"title": self.title, "id": self.id or ""}

    note = Note("hello")
    note.init()
    note.title = "changed"
    assert note.is_dirty
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

from modelsync.core.errors import (
    AlreadyOwnedError,
    CollectionNotPresentError,
    IdentityExtractionError,
    ValidationError,
)
from modelsync.core.identity import LOCAL_ID_KEY, IdentityConfig, has_identity, new_local_id
from modelsync.core.model.models import CallState, ModelErrors, PendingSave
from modelsync.core.model.operations import read_field, response_data, with_field
from modelsync.core.observe import Observable
from modelsync.core.types import Disposer, Payload

if TYPE_CHECKING:
    from modelsync.collection.collection import Collection
    from modelsync.collection.config import DeleteConfig, SaveConfig
    from modelsync.collection.lite import LiteCollection
    from modelsync.collection.result import DeleteResult, SaveResult

_UNSET: Any = object()


class Model(Observable):
    """Base class for synchronizable models.

    Subclasses implement ``serialize()`` and may override ``identity_config``
    and the public ``on_*`` hooks. Assigning any public attribute counts as a
    change and is visible to collection observers (identity index, autosave).
    """

    identity_config: ClassVar[IdentityConfig] = IdentityConfig()

    def __init__(self) -> None:
        self._local_id = new_local_id()
        self._collection: Collection[Any] | None = None
        self._errors = ModelErrors()
        self._is_deleted = False
        self._is_saving = False
        self._is_deleting = False
        self._is_destroyed = False
        self._initialized = False
        self._pending_save: PendingSave | None = None
        self._payload_cache: Payload = _UNSET
        self._payload_disposer: Disposer | None = None
        self._last_synced_payload: Payload = None

    def serialize(self) -> Payload:
        """Return the persistable state of the model as a plain value."""
        raise NotImplementedError(f"{type(self).__name__} must implement serialize()")

    # --- Lifecycle ---

    def init(self) -> None:
        """Start payload tracking and seed the synced baseline. Idempotent."""
        if self._initialized:
            return
        self._payload_disposer = self.subscribe(self._refresh_payload)
        self._last_synced_payload = self.payload
        self._initialized = True

    def destroy(self) -> None:
        """Stop payload tracking and mark the model destroyed. Irreversible."""
        self.on_destroy()
        self._is_destroyed = True
        if self._payload_disposer is not None:
            self._payload_disposer()
            self._payload_disposer = None

    def _refresh_payload(self, _name: str) -> None:
        self.payload  # noqa: B018 - keeps the memoized payload current

    # --- Identity ---

    @property
    def local_id(self) -> str:
        return self._local_id

    @property
    def identity_key(self) -> str:
        return type(self).identity_config.identity_key

    @property
    def identity(self) -> Any:
        """Current value of the attribute named by ``identity_key``."""
        return getattr(self, self.identity_key, None)

    def set_identity(self, value: Any) -> None:
        """Force-assign the identity attribute.

        Raises:
            ValidationError: If the identity is the local id, which is read-only.
        """
        if self.identity_key == LOCAL_ID_KEY:
            raise ValidationError(
                f"{type(self).__name__} uses its local id as identity; it cannot be assigned"
            )
        setattr(self, self.identity_key, value)

    @property
    def is_new(self) -> bool:
        """True until the model has a server-confirmed identity."""
        identity = self.identity
        return not has_identity(identity) or identity == self._local_id

    # --- Payload and dirty tracking ---

    @property
    def payload(self) -> Payload:
        """Serialized snapshot, memoized by structural equality.

        Two evaluations that serialize to equal values return the same object.
        """
        fresh = self.serialize()
        cached = self._payload_cache
        if cached is not _UNSET and cached == fresh:
            return cached
        self._payload_cache = fresh
        return fresh

    @property
    def last_synced_payload(self) -> Payload:
        """Payload as of the last successful save (or ``init()``)."""
        return self._last_synced_payload

    @property
    def is_dirty(self) -> bool:
        return self._last_synced_payload != self.payload

    # --- Flags ---

    @property
    def collection(self) -> Collection[Any] | None:
        """Owning (non-lite) collection, if any."""
        return self._collection

    @property
    def is_deleted(self) -> bool:
        return self._is_deleted

    @property
    def is_saving(self) -> bool:
        return self._is_saving

    @property
    def is_deleting(self) -> bool:
        return self._is_deleting

    @property
    def is_syncing(self) -> bool:
        return self._is_saving or self._is_deleting

    @property
    def is_destroyed(self) -> bool:
        return self._is_destroyed

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def has_errors(self) -> bool:
        return self._errors.any()

    @property
    def save_error(self) -> Any:
        return self._errors.save

    @property
    def delete_error(self) -> Any:
        return self._errors.delete

    # --- Convenience operations ---

    async def save(
        self, config: SaveConfig | dict[str, Any] | None = None, transport_config: Any = None
    ) -> SaveResult[Any]:
        """Save through the owning collection.

        Raises:
            CollectionNotPresentError: If the model has no owning collection.
        """
        collection = self._require_collection()
        return await collection.save(self, config, transport_config)

    async def delete(
        self, config: DeleteConfig | dict[str, Any] | None = None, transport_config: Any = None
    ) -> DeleteResult[Any]:
        """Delete through the owning collection.

        Raises:
            CollectionNotPresentError: If the model has no owning collection.
        """
        collection = self._require_collection()
        return await collection.delete(self, config, transport_config)

    def _require_collection(self) -> Collection[Any]:
        if self._collection is None:
            raise CollectionNotPresentError()
        return self._collection

    # --- Collection notifications (internal) ---

    def _check_can_join(self, collection: LiteCollection[Any], lite: bool) -> None:
        if not lite and self._collection is not None and self._collection is not collection:
            raise AlreadyOwnedError()

    def _on_added(self, collection: LiteCollection[Any], lite: bool) -> None:
        self._check_can_join(collection, lite)
        if not lite:
            self._collection = collection  # type: ignore[assignment]
        self.on_added(collection, lite)

    def _on_removed(self, collection: LiteCollection[Any], lite: bool) -> None:
        self.on_removed(collection, lite)
        if collection is self._collection:
            self._collection = None

    def _on_save_start(self, config: SaveConfig, transport_config: Any, token: object) -> None:
        self._is_saving = True
        self._pending_save = PendingSave(token=token)
        self._errors.save = None
        self.on_save_start(config, transport_config)

    def _on_save_success(
        self,
        response: Any,
        config: SaveConfig,
        transport_config: Any,
        saved_payload: Payload,
        token: object,
    ) -> None:
        pending = self._pending_save
        # An older call may set the baseline only while the newest one is unresolved.
        if pending is None or pending.token is token or pending.state is CallState.PENDING:
            self._last_synced_payload = saved_payload

        if pending is not None and pending.token is token:
            self._is_saving = False
            pending.state = CallState.RESOLVED

        if self.is_new and type(self).identity_config.set_identity_from_response:
            key = self.identity_key
            value = self.extract_identity(response_data(response), config, transport_config)
            if not has_identity(value):
                raise IdentityExtractionError(
                    f"Identity value for identity key: {key} could not be extracted "
                    "from the response."
                )
            self.set_identity(value)
            self._last_synced_payload = with_field(self._last_synced_payload, key, self.identity)

        self.on_save_success(response, config, transport_config)

    def _on_save_error(
        self,
        error: Any,
        config: SaveConfig,
        transport_config: Any,
        token: object,
        payload: Payload,
    ) -> None:
        pending = self._pending_save
        if pending is not None and pending.token is token:
            self._is_saving = False
            self._errors.save = error
            pending.state = CallState.REJECTED
        self.on_save_error(error, config, transport_config, payload)

    def _on_delete_start(self, config: DeleteConfig, transport_config: Any) -> None:
        self._is_deleting = True
        self._errors.delete = None
        self.on_delete_start(config, transport_config)

    def _on_delete_success(self, response: Any, config: DeleteConfig, transport_config: Any) -> None:
        self._is_deleting = False
        self._errors.delete = None
        self._is_deleted = True
        self.on_delete_success(response, config, transport_config)

    def _on_delete_error(self, error: Any, config: DeleteConfig, transport_config: Any) -> None:
        self._errors.delete = error
        self._is_deleting = False
        self._is_deleted = False
        self.on_delete_error(error, config, transport_config)

    def extract_identity(self, data: Any, config: SaveConfig, transport_config: Any) -> Any:
        """Read the identity from save response data. Override for custom shapes."""
        return read_field(data, self.identity_key)

    # --- Hooks ---

    def on_added(self, collection: LiteCollection[Any], lite: bool) -> None:
        pass

    def on_removed(self, collection: LiteCollection[Any], lite: bool) -> None:
        pass

    def on_save_start(self, config: SaveConfig, transport_config: Any) -> None:
        pass

    def on_save_success(self, response: Any, config: SaveConfig, transport_config: Any) -> None:
        pass

    def on_save_error(
        self, error: Any, config: SaveConfig, transport_config: Any, payload: Payload
    ) -> None:
        pass

    def on_delete_start(self, config: DeleteConfig, transport_config: Any) -> None:
        pass

    def on_delete_success(self, response: Any, config: DeleteConfig, transport_config: Any) -> None:
        pass

    def on_delete_error(self, error: Any, config: DeleteConfig, transport_config: Any) -> None:
        pass

    def on_destroy(self) -> None:
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(local_id={self._local_id!r}, identity={self.identity!r})"
