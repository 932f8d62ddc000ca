"""Core type definitions for modelsync."""

from collections.abc import Awaitable, Callable
from typing import Any, Literal

type Payload = Any
"""Plain structured value produced by ``Model.serialize()``.

Payloads are compared structurally (``==``), so dicts, lists, tuples and
scalars are the expected building blocks.
"""

type RawRecord = Any
"""One item of a transport load batch, before it is turned into a model."""

type InsertPosition = Literal["start", "end"] | int
"""Where newly added models go: the start, the end, or before an index."""

type Disposer = Callable[[], None]
"""Callable that permanently detaches an observer. Safe to call twice."""

type FactoryFn[M] = Callable[[RawRecord], M | Awaitable[M]]
"""Builds a (not yet initialized) model from a raw record, sync or async."""
