"""Shared test fixtures."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

import pytest

from modelsync import IdentityConfig, Model


class FixtureNote(Model):
    identity_config = IdentityConfig(identity_key="id")

    def __init__(self, title: str = "", body: str = "", id: str | None = None):
        super().__init__()
        self.title = title
        self.body = body
        self.id = id

    def serialize(self) -> dict[str, Any]:
        return {"title": self.title, "body": self.body, "id": self.id or ""}

    @classmethod
    def from_record(cls, data: dict[str, Any]) -> FixtureNote:
        return cls(title=data.get("title", ""), body=data.get("body", ""), id=data.get("id") or None)


class FixtureServerNote(FixtureNote):
    """Note that takes its identity from the save response."""

    identity_config = IdentityConfig(identity_key="id", set_identity_from_response=True)


@dataclass
class TransportCall:
    op: str
    model: Any
    config: Any
    future: asyncio.Future[Any]


@dataclass
class ControlledTransport:
    """Transport whose calls stay pending until the test resolves them."""

    calls: list[TransportCall] = field(default_factory=list)

    def _defer(self, op: str, model: Any, config: Any) -> asyncio.Future[Any]:
        future = asyncio.get_running_loop().create_future()
        self.calls.append(TransportCall(op, model, config, future))
        return future

    async def load(self, config: Any = None) -> Any:
        return await self._defer("load", None, config)

    async def save(self, model: Any, config: Any = None) -> Any:
        return await self._defer("save", model, config)

    async def delete(self, model: Any, config: Any = None) -> Any:
        return await self._defer("delete", model, config)

    def pending(self, op: str) -> list[TransportCall]:
        return [call for call in self.calls if call.op == op and not call.future.done()]

    def last(self, op: str) -> TransportCall:
        return [call for call in self.calls if call.op == op][-1]


async def settle(rounds: int = 5) -> None:
    """Let scheduled tasks run up to their next await."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def note_cls():
    return FixtureNote


@pytest.fixture
def server_note_cls():
    return FixtureServerNote


@pytest.fixture
def transport():
    """Fresh ControlledTransport."""
    return ControlledTransport()


@pytest.fixture
def settle_tasks():
    return settle
