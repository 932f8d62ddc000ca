"""Operation results returned by collection save/delete/load.

Expected failures are never raised past the public collection methods; they
are stored in the ``error`` field. Exactly one of the success fields or
``error`` is populated.

Usage:
    result = await collection.save(model)
    if not result.ok:
        log(result.error)

    # or raise instead
    model = unwrap_result(await collection.save(model)).model
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

M = TypeVar("M")
R = TypeVar("R", "SaveResult[Any]", "DeleteResult[Any]", "LoadResult[Any]")


@dataclass(slots=True)
class SaveResult(Generic[M]):
    response: Any = None
    model: M | None = None
    error: Any = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class DeleteResult(Generic[M]):
    response: Any = None
    model: M | None = None
    error: Any = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class LoadResult(Generic[M]):
    response: Any = None
    added: list[M] = field(default_factory=list)
    removed: list[M] = field(default_factory=list)
    error: Any = None

    @property
    def ok(self) -> bool:
        return self.error is None


def unwrap_result(result: R) -> R:
    """Raise the stored error, or return the result unchanged.

    Args:
        result: Any collection operation result.

    Returns:
        The same result when it succeeded.

    Raises:
        Exception: The stored error if it is an exception, otherwise a
            RuntimeError wrapping the stored value.
    """
    error = result.error
    if error is None:
        return result
    if isinstance(error, BaseException):
        raise error
    raise RuntimeError(error)
