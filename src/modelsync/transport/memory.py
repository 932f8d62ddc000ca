"""In-process transports.

StubTransport accepts every call and stores nothing. InMemoryTransport keeps
payloads in a dict keyed by identity, which is enough to exercise the whole
save/delete/load cycle without a server.

Usage:
    transport = InMemoryTransport(records=[{"id": "1", "title": "first"}])
    collection = Collection(Note.from_record, transport)
    await collection.load()
"""

from __future__ import annotations

import copy as cp
import itertools
from collections.abc import Callable, Iterable
from typing import Any

from modelsync.core.errors import TransportError
from modelsync.core.model import Model, read_field


class StubTransport:
    """Transport that succeeds without doing anything."""

    async def load(self, config: Any = None) -> dict[str, Any]:
        return {"data": []}

    async def save(self, model: Model, config: Any = None) -> None:
        return None

    async def delete(self, model: Model, config: Any = None) -> None:
        return None


class InMemoryTransport:
    """Dict-backed transport that assigns identities to new models.

    Args:
        records: Initial raw records. Each must carry ``identity_key``.
        identity_key: Field holding the identity in stored records.
        id_factory: Produces identities for new models. Defaults to
            sequential strings starting after the initial records.
    """

    def __init__(
        self,
        records: Iterable[dict[str, Any]] | None = None,
        identity_key: str = "id",
        id_factory: Callable[[], Any] | None = None,
    ):
        self._identity_key = identity_key
        self._records: dict[Any, dict[str, Any]] = {}
        for record in records or ():
            identity = record.get(identity_key)
            if identity is None:
                raise TransportError(f"Record is missing identity key {identity_key!r}")
            self._records[identity] = cp.deepcopy(record)

        counter = itertools.count(len(self._records) + 1)
        self._id_factory = id_factory or (lambda: str(next(counter)))

    @property
    def records(self) -> list[dict[str, Any]]:
        """Deep copies of the stored records, in insertion order."""
        return [cp.deepcopy(record) for record in self._records.values()]

    async def load(self, config: Any = None) -> dict[str, Any]:
        return {"data": self.records}

    async def save(self, model: Model, config: Any = None) -> dict[str, Any]:
        payload = model.payload
        identity = read_field(payload, self._identity_key)
        if model.is_new or not identity:
            identity = self._id_factory()
        record = {**cp.deepcopy(payload), self._identity_key: identity}
        self._records[identity] = record
        return {"data": cp.deepcopy(record)}

    async def delete(self, model: Model, config: Any = None) -> dict[str, Any]:
        identity = model.identity
        if identity not in self._records:
            raise TransportError(f"No record with identity {identity!r}")
        del self._records[identity]
        return {"data": None}
