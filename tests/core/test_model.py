"""Tests for Model payload, dirty tracking, and lifecycle.

Critical Invariants:
- Equal serializations return the same payload object
- A model is dirty only when its payload differs from the synced baseline
- init() is idempotent; destroy() stops payload tracking
- Convenience save/delete require an owning collection
"""

import pytest

from modelsync import (
    Collection,
    CollectionNotPresentError,
    LiteCollection,
    StubTransport,
)


def test_serialize_must_be_implemented():
    from modelsync import Model

    with pytest.raises(NotImplementedError):
        Model().payload


def test_payload_memoized_by_structure(note_cls):
    """Equal payloads keep their object identity.

    Why: Observers compare payloads; a fresh but equal dict must not look like a change.
    """
    note = note_cls("a")
    first = note.payload

    note.title = "a"

    assert note.payload is first


def test_payload_replaced_on_change(note_cls):
    note = note_cls("a")
    first = note.payload

    note.title = "b"

    assert note.payload is not first
    assert note.payload == {"title": "b", "body": "", "id": ""}


def test_init_seeds_baseline(note_cls):
    note = note_cls("a")
    assert note.last_synced_payload is None

    note.init()

    assert note.last_synced_payload == note.payload
    assert not note.is_dirty
    assert note.is_initialized


def test_dirty_after_change_and_clean_after_revert(note_cls):
    note = note_cls("a")
    note.init()

    note.title = "b"
    assert note.is_dirty

    note.title = "a"
    assert not note.is_dirty


def test_init_is_idempotent(note_cls):
    note = note_cls("a")
    note.init()
    note.title = "b"

    note.init()

    assert note.is_dirty


def test_destroy_marks_destroyed_and_calls_hook(note_cls):
    destroyed = []

    class Tracked(note_cls):
        def on_destroy(self):
            destroyed.append(self)

    note = Tracked("a")
    note.init()
    note.destroy()

    assert note.is_destroyed
    assert destroyed == [note]


def test_flags_start_clear(note_cls):
    note = note_cls()

    assert not note.is_saving
    assert not note.is_deleting
    assert not note.is_deleted
    assert not note.is_syncing
    assert not note.has_errors
    assert note.save_error is None
    assert note.delete_error is None
    assert note.collection is None


@pytest.mark.asyncio
async def test_save_without_collection_raises(note_cls):
    with pytest.raises(CollectionNotPresentError):
        await note_cls().save()


@pytest.mark.asyncio
async def test_delete_without_collection_raises(note_cls):
    with pytest.raises(CollectionNotPresentError):
        await note_cls().delete()


def test_lite_collection_does_not_own(note_cls):
    note = note_cls()
    LiteCollection(note_cls.from_record).add(note)

    assert note.collection is None


def test_collection_membership_tracked(note_cls):
    collection = Collection(note_cls.from_record, StubTransport())
    note = note_cls()

    collection.add(note)
    assert note.collection is collection

    collection.remove(note)
    assert note.collection is None


@pytest.mark.asyncio
async def test_model_save_delegates_to_collection(note_cls):
    collection = Collection(note_cls.from_record, StubTransport())
    note = note_cls("x")
    collection.add(note)

    result = await note.save()

    assert result.ok
    assert result.model is note


@pytest.mark.asyncio
async def test_model_delete_delegates_to_collection(note_cls):
    collection = Collection(note_cls.from_record, StubTransport())
    note = note_cls("x")
    collection.add(note)

    result = await note.delete()

    assert result.ok
    assert note.is_deleted
    assert note not in collection
