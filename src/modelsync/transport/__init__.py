"""Transport backends."""

from modelsync.transport.memory import InMemoryTransport, StubTransport
from modelsync.transport.protocol import Transport

__all__ = [
    "Transport",
    "StubTransport",
    "InMemoryTransport",
]
