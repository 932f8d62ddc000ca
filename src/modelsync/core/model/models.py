"""Model state records: save call tracking and per-operation errors."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class CallState(StrEnum):
    """Lifecycle of one transport call."""

    PENDING = "pending"
    RESOLVED = "resolved"
    REJECTED = "rejected"


@dataclass(slots=True)
class PendingSave:
    """The most recent save started for a model.

    ``token`` is compared by identity: only the call holding the current
    token may clear the saving flag.
    """

    token: object
    state: CallState = CallState.PENDING


@dataclass(slots=True)
class ModelErrors:
    """Last error of each operation kind. Cleared when a new attempt starts."""

    save: Any = None
    delete: Any = None

    def any(self) -> bool:
        return self.save is not None or self.delete is not None
