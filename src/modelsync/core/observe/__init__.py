"""Change observation primitives."""

from modelsync.core.observe.core import Debounced, Listener, Observable, Reaction, reaction

__all__ = [
    "Debounced",
    "Listener",
    "Observable",
    "Reaction",
    "reaction",
]
