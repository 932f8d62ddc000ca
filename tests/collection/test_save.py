"""Tests for Collection.save.

Critical Invariants:
- Only the newest save of a model may clear is_saving or record save_error
- An older save may set the baseline only while the newest is unresolved
- Failures are returned in the result, never raised
- Identity extraction failures surface as result errors
"""

import asyncio

import pytest

from modelsync import (
    AlreadyOwnedError,
    Collection,
    IdentityExtractionError,
    NotAModelError,
    SaveConfig,
)


async def start_save(collection, model, config=None, settle=None):
    task = asyncio.create_task(collection.save(model, config))
    await settle()
    return task


@pytest.fixture
def collection(note_cls, transport):
    return Collection(note_cls.from_record, transport)


@pytest.mark.asyncio
async def test_save_success(collection, transport, note_cls, settle_tasks):
    note = note_cls("draft")
    note.init()
    saved_payload = note.payload

    task = await start_save(collection, note, settle=settle_tasks)
    assert note.is_saving
    assert collection.saving_models == [note]

    transport.last("save").future.set_result({"data": {"ok": True}})
    result = await task

    assert result.ok
    assert result.model is note
    assert result.response == {"data": {"ok": True}}
    assert not note.is_saving
    assert note.last_synced_payload is saved_payload
    assert collection.saving_models == []


@pytest.mark.asyncio
async def test_save_adds_immediately_by_default(collection, transport, note_cls, settle_tasks):
    note = note_cls("draft")

    task = await start_save(collection, note, settle=settle_tasks)

    assert note in collection
    assert note.collection is collection
    transport.last("save").future.set_result(None)
    await task


@pytest.mark.asyncio
async def test_save_insert_position(collection, transport, note_cls, settle_tasks):
    first = note_cls("first")
    collection.add(first)
    second = note_cls("second")

    task = await start_save(collection, second, {"insert_position": "start"}, settle=settle_tasks)
    transport.last("save").future.set_result(None)
    await task

    assert list(collection) == [second, first]


@pytest.mark.asyncio
async def test_save_deferred_add(collection, transport, note_cls, settle_tasks):
    note = note_cls("draft")

    task = await start_save(collection, note, {"add_immediately": False}, settle=settle_tasks)
    assert note not in collection
    assert collection.saving_models == [note]

    transport.last("save").future.set_result(None)
    result = await task

    assert result.ok
    assert note in collection


@pytest.mark.asyncio
async def test_save_failure_returns_error(collection, transport, note_cls, settle_tasks):
    note = note_cls("draft")
    note.init()
    baseline = note.last_synced_payload
    note.title = "edited"
    boom = RuntimeError("server down")

    task = await start_save(collection, note, settle=settle_tasks)
    transport.last("save").future.set_exception(boom)
    result = await task

    assert not result.ok
    assert result.error is boom
    assert note.save_error is boom
    assert note.has_errors
    assert not note.is_saving
    assert note.last_synced_payload is baseline
    assert note.is_dirty
    assert collection.saving_models == []


@pytest.mark.asyncio
async def test_save_error_cleared_by_next_save(collection, transport, note_cls, settle_tasks):
    note = note_cls("draft")

    task = await start_save(collection, note, settle=settle_tasks)
    transport.last("save").future.set_exception(RuntimeError("fail"))
    await task
    assert note.save_error is not None

    task = await start_save(collection, note, settle=settle_tasks)
    assert note.save_error is None
    transport.last("save").future.set_result(None)
    await task
    assert not note.has_errors


@pytest.mark.parametrize("add_on_error, expected", [(True, True), (False, False)])
@pytest.mark.asyncio
async def test_save_failure_deferred_add_on_error(
    collection, transport, note_cls, settle_tasks, add_on_error, expected
):
    note = note_cls("draft")
    config = {"add_immediately": False, "add_on_error": add_on_error}

    task = await start_save(collection, note, config, settle=settle_tasks)
    transport.last("save").future.set_exception(RuntimeError("fail"))
    await task

    assert (note in collection) is expected


@pytest.mark.asyncio
async def test_save_accepts_config_instance(collection, transport, note_cls, settle_tasks):
    note = note_cls()

    task = await start_save(
        collection, note, SaveConfig(add_immediately=False), settle=settle_tasks
    )
    assert note not in collection
    transport.last("save").future.set_result(None)
    await task


@pytest.mark.asyncio
async def test_save_builds_model_from_raw_record(collection, transport, settle_tasks):
    task = await start_save(collection, {"title": "from data"}, settle=settle_tasks)
    call = transport.last("save")
    assert call.model.title == "from data"
    assert call.model.is_initialized

    call.future.set_result(None)
    result = await task

    assert result.ok
    assert result.model is call.model
    assert list(collection) == [call.model]


@pytest.mark.asyncio
async def test_save_rejects_factory_output_that_is_not_a_model(transport):
    collection = Collection(lambda data: data, transport)

    with pytest.raises(NotAModelError):
        await collection.save({"title": "x"})

    assert transport.calls == []


@pytest.mark.asyncio
async def test_deferred_save_of_owned_model_raises_before_transport(note_cls, transport):
    """A model owned elsewhere is rejected up front, even when added after the save.

    Why: Raising after the transport call would leave is_saving stuck.
    """
    owner = Collection(note_cls.from_record, transport)
    other = Collection(note_cls.from_record, transport)
    note = note_cls("owned")
    owner.add(note)

    with pytest.raises(AlreadyOwnedError):
        await other.save(note, {"add_immediately": False})

    assert transport.calls == []
    assert not note.is_saving
    assert not note.is_syncing
    assert other.saving_models == []
    assert note.collection is owner


@pytest.mark.asyncio
async def test_parse_save_response_runs_before_identity_extraction(
    transport, server_note_cls, settle_tasks
):
    class Unwrapping(Collection):
        def parse_save_response(self, response, config, transport_config):
            return {"data": response["payload"]}

    collection = Unwrapping(server_note_cls.from_record, transport)
    note = server_note_cls("draft")

    task = await start_save(collection, note, settle=settle_tasks)
    transport.last("save").future.set_result({"payload": {"id": "55"}})
    result = await task

    assert result.ok
    assert result.response == {"data": {"id": "55"}}
    assert note.id == "55"


# Identity from response


@pytest.mark.asyncio
async def test_identity_set_from_response(transport, server_note_cls, settle_tasks):
    collection = Collection(server_note_cls.from_record, transport)
    note = server_note_cls("draft")
    note.init()

    task = await start_save(collection, note, settle=settle_tasks)
    transport.last("save").future.set_result({"data": {"id": "123"}})
    result = await task

    assert result.ok
    assert note.id == "123"
    assert not note.is_new
    assert collection.get_by_id("123") is note
    assert note.last_synced_payload == {"title": "draft", "body": "", "id": "123"}
    assert not note.is_dirty


@pytest.mark.asyncio
async def test_identity_extraction_failure(transport, server_note_cls, settle_tasks):
    """Missing identity in the response turns a transport success into an error.

    Why: A new model without a server identity cannot be saved again correctly.
    """
    collection = Collection(server_note_cls.from_record, transport)
    note = server_note_cls("draft")

    task = await start_save(collection, note, settle=settle_tasks)
    transport.last("save").future.set_result({"data": {}})
    result = await task

    assert isinstance(result.error, IdentityExtractionError)
    assert "could not be extracted" in str(result.error)
    assert note.save_error is result.error
    assert not note.is_saving
    assert note.is_new


@pytest.mark.asyncio
async def test_identity_not_extracted_for_saved_model(transport, server_note_cls, settle_tasks):
    collection = Collection(server_note_cls.from_record, transport)
    note = server_note_cls("draft", id="7")

    task = await start_save(collection, note, settle=settle_tasks)
    transport.last("save").future.set_result({"data": {}})
    result = await task

    assert result.ok
    assert note.id == "7"


# Overlapping saves


@pytest.mark.asyncio
async def test_overlapping_saves_newest_resolves_first(
    collection, transport, note_cls, settle_tasks
):
    note = note_cls("v1")
    note.init()

    first = await start_save(collection, note, settle=settle_tasks)
    first_call = transport.last("save")
    note.title = "v2"
    second = await start_save(collection, note, settle=settle_tasks)
    second_call = transport.last("save")

    second_call.future.set_result(None)
    await second
    assert not note.is_saving
    assert note.last_synced_payload["title"] == "v2"

    first_call.future.set_result(None)
    await first
    assert not note.is_saving
    assert note.last_synced_payload["title"] == "v2"
    assert collection.saving_models == []


@pytest.mark.asyncio
async def test_overlapping_saves_oldest_resolves_first(
    collection, transport, note_cls, settle_tasks
):
    note = note_cls("v1")
    note.init()

    first = await start_save(collection, note, settle=settle_tasks)
    first_call = transport.last("save")
    note.title = "v2"
    second = await start_save(collection, note, settle=settle_tasks)
    second_call = transport.last("save")

    first_call.future.set_result(None)
    await first
    assert note.is_saving
    assert note.last_synced_payload["title"] == "v1"
    assert collection.saving_models == [note]

    second_call.future.set_result(None)
    await second
    assert not note.is_saving
    assert note.last_synced_payload["title"] == "v2"
    assert not note.is_dirty
    assert collection.saving_models == []


@pytest.mark.asyncio
async def test_stale_save_error_is_ignored(collection, transport, note_cls, settle_tasks):
    note = note_cls("v1")

    first = await start_save(collection, note, settle=settle_tasks)
    first_call = transport.last("save")
    second = await start_save(collection, note, settle=settle_tasks)
    second_call = transport.last("save")

    first_call.future.set_exception(RuntimeError("stale"))
    stale = await first
    assert not stale.ok
    assert note.save_error is None
    assert note.is_saving

    second_call.future.set_result(None)
    await second
    assert not note.is_saving
    assert not note.has_errors


# Hooks


@pytest.mark.asyncio
async def test_save_hooks(transport, note_cls, settle_tasks):
    events = []

    class Tracking(Collection):
        def on_save_start(self, model, config, transport_config):
            events.append(("start", transport_config))

        def on_save_success(self, model, response, config, transport_config):
            events.append(("success", response))

        def on_save_error(self, model, error, config, transport_config):
            events.append(("error", error))

    collection = Tracking(note_cls.from_record, transport)
    note = note_cls()

    task = asyncio.create_task(collection.save(note, transport_config={"retry": 1}))
    await settle_tasks()
    assert transport.last("save").config == {"retry": 1}
    transport.last("save").future.set_result("ok")
    await task

    assert events == [("start", {"retry": 1}), ("success", "ok")]
