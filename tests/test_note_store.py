"""
Test suite for the Note Collection Store.

Tests load/create/update/delete against the in-memory backend, the
newest-first ordering of the published collection and failure handling.
"""

import asyncio

import pytest

from quillquiver.services.note_store import NoteCollectionState, NoteCollectionStore
from quillquiver.utils.exceptions import NotFoundError, PersistenceError


@pytest.fixture
def store(facade, user):
    return NoteCollectionStore(facade, user.id)


@pytest.fixture
def seeded(facade, user, clock):
    """Three notes written a minute apart, plus one owned by someone else."""

    async def seed():
        notes = []
        for title in ("Groceries", "Meeting notes", "Ideas"):
            notes.append(await facade.insert_note(user.id, title, f"{title} body"))
            clock.advance(minutes=1)
        await facade.insert_note("someone-else", "Private", "not yours")
        facade.calls.clear()
        return notes

    return seed


@pytest.mark.asyncio
class TestLoad:
    """Loading the collection."""

    async def test_loads_owner_notes_newest_first(self, store, seeded):
        """Test that only the owner's notes are published, most recent first."""
        await seeded()

        result = await store.load()

        assert result.success
        assert [note.title for note in store.notes] == ["Ideas", "Meeting notes", "Groceries"]
        assert store.loading is False

    async def test_loading_flag_while_in_flight(self, store, facade):
        """Test that loading is set for the duration of the request."""
        gate = facade.hold("list_notes")
        task = asyncio.ensure_future(store.load())
        await asyncio.sleep(0)

        assert store.loading is True

        gate.set()
        await task
        assert store.loading is False

    async def test_failure_keeps_previous_collection(self, store, facade, seeded):
        """Test that a failed reload reports PersistenceError and changes nothing."""
        await seeded()
        await store.load()
        before = store.notes
        facade.fail_next("list_notes", "connection reset")

        result = await store.load()

        assert isinstance(result.error, PersistenceError)
        assert result.error_message == "Failed to load notes"
        assert store.notes == before
        assert store.loading is False


@pytest.mark.asyncio
class TestMutations:
    """Create, update and delete."""

    async def test_create_publishes_server_copy(self, store, user):
        """Test that the created note carries equal server timestamps."""
        result = await store.create("Untitled Note")

        note = result.data
        assert result.success
        assert note.owner == user.id
        assert note.created_at == note.updated_at
        assert store.notes == [note]

    async def test_create_failure_leaves_collection(self, store, facade):
        facade.fail_next("insert_note")

        result = await store.create("Draft")

        assert isinstance(result.error, PersistenceError)
        assert store.notes == []

    async def test_update_moves_note_to_front(self, store, seeded, clock):
        """Test that an updated note gets a newer timestamp and is listed first."""
        notes = await seeded()
        await store.load()
        clock.advance(minutes=5)

        result = await store.update(notes[0].id, title="Groceries (weekly)")

        assert result.success
        assert store.notes[0].id == notes[0].id
        assert store.notes[0].title == "Groceries (weekly)"
        assert store.notes[0].content == "Groceries body"
        assert store.notes[0].updated_at > notes[0].updated_at

    async def test_update_sends_only_given_fields(self, store, facade, seeded):
        notes = await seeded()
        await store.load()

        await store.update(notes[1].id, content="new body")

        assert facade.calls[-1] == ("update_note", (notes[1].id, {"content": "new body"}))

    async def test_update_unknown_id_makes_no_remote_call(self, store, facade):
        """Test that an id outside the collection fails with NotFoundError."""
        result = await store.update("missing-note-id", title="x")

        assert isinstance(result.error, NotFoundError)
        assert facade.call_count("update_note") == 0

    async def test_update_failure_keeps_note(self, store, facade, seeded):
        notes = await seeded()
        await store.load()
        before = store.notes
        facade.fail_next("update_note", "timeout")

        result = await store.update(notes[2].id, title="changed")

        assert isinstance(result.error, PersistenceError)
        assert store.notes == before

    async def test_update_result_dropped_after_delete(self, store, facade, seeded):
        """Test that a note deleted while its update is in flight stays deleted."""
        notes = await seeded()
        await store.load()
        gate = facade.hold("update_note")
        update = asyncio.ensure_future(store.update(notes[0].id, title="late"))
        await asyncio.sleep(0)

        await store.delete(notes[0].id)
        facade.release("update_note")
        await update

        assert store.get(notes[0].id) is None

    async def test_delete_removes_note(self, store, seeded):
        notes = await seeded()
        await store.load()

        result = await store.delete(notes[1].id)

        assert result.success
        assert [note.title for note in store.notes] == ["Ideas", "Groceries"]

    async def test_delete_is_idempotent(self, store, facade, seeded):
        """Test that deleting an absent id succeeds without a remote call."""
        notes = await seeded()
        await store.load()
        await store.delete(notes[1].id)

        result = await store.delete(notes[1].id)

        assert result.success
        assert facade.call_count("delete_note") == 1

    async def test_delete_failure_keeps_note(self, store, facade, seeded):
        notes = await seeded()
        await store.load()
        facade.fail_next("delete_note")

        result = await store.delete(notes[1].id)

        assert result.error_message == "Failed to delete note"
        assert store.get(notes[1].id) is not None


@pytest.mark.asyncio
class TestQueries:
    """Search, lookup and clearing."""

    async def test_search_is_case_insensitive(self, store, seeded):
        await seeded()
        await store.load()

        assert [note.title for note in store.search("MEETING")] == ["Meeting notes"]
        assert [note.title for note in store.search("body")] == ["Ideas", "Meeting notes", "Groceries"]
        assert store.search("nothing like this") == []

    async def test_empty_query_returns_everything(self, store, seeded):
        await seeded()
        await store.load()

        assert len(store.search("")) == 3

    async def test_subscribers_notified_on_change(self, store):
        """Test that every published collection reaches subscribers."""
        seen = []
        store.state.subscribe(lambda state: seen.append(len(state.notes)))

        await store.create("One")
        await store.create("Two")

        assert seen == [1, 2]

    async def test_clear_resets_state(self, store, seeded):
        await seeded()
        await store.load()

        store.clear()

        assert store.state.value == NoteCollectionState()
