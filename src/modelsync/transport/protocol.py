"""Transport protocol for swappable persistence backends.

The transport layer is the only place that talks to a backing store:
- HTTP APIs
- Browser-style local databases
- In-memory stubs for tests

Collections never retry, time out, or wrap transport errors; every call is
a single attempt and whatever the transport raises is returned verbatim.

Usage:
    transport = InMemoryTransport()
    collection = Collection(Note.from_record, transport)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, TypeVar, runtime_checkable

if TYPE_CHECKING:
    from modelsync.core.model import Model

M_contra = TypeVar("M_contra", bound="Model", contravariant=True)


@runtime_checkable
class Transport(Protocol[M_contra]):
    """Abstract persistence interface consumed by Collection.

    Responses are mappings (``{"data": ...}``) or objects with a ``data``
    attribute. Load responses must carry the batch of raw records in
    ``data``; save and delete responses may carry anything, or be None.
    """

    async def load(self, config: Any = None) -> Any:
        """Fetch a batch of raw records."""
        ...

    async def save(self, model: M_contra, config: Any = None) -> Any:
        """Persist one model. May return the server's view of it in ``data``."""
        ...

    async def delete(self, model: M_contra, config: Any = None) -> Any:
        """Delete one model from the backing store."""
        ...
