"""
Integration tests for the Workspace coordinator.

Drives the whole client core against the in-memory backend: signing in,
loading, creating, selecting and deleting notes, and signing out again.
"""

import asyncio

import pytest

from quillquiver.schemas.state_schemas import AuthMode
from quillquiver.services.workspace import Workspace
from quillquiver.utils.exceptions import AuthError, NotFoundError

# Three autosave windows; conftest configures a 0.05s delay.
SETTLE = 0.15


@pytest.fixture
def workspace(facade, app_config):
    return Workspace(facade, app_config)


async def sign_in(workspace):
    await workspace.start()
    result = await workspace.auth_flow.sign_in("a@x.com", "correct-horse")
    await workspace.wait_idle()
    return result


@pytest.mark.asyncio
class TestSessionTransitions:
    """Reaction to signing in and out."""

    async def test_signed_out_start(self, workspace):
        """Test that an anonymous start shows the sign-in form and nothing else."""
        await workspace.start()

        snapshot = workspace.snapshot()
        assert snapshot["session"] == {"user": None, "loading": False}
        assert snapshot["auth_flow"] == {"mode": AuthMode.SIGN_IN, "pending_email": ""}
        assert snapshot["notes"] is None
        assert snapshot["edit_session"] is None

    async def test_snapshot_before_start_is_loading(self, workspace):
        snapshot = workspace.snapshot()

        assert snapshot["session"]["loading"] is True
        assert snapshot["auth_flow"] is None

    async def test_stored_session_loads_notes(self, workspace, facade, user, clock):
        """Test that resuming a stored session fetches that user's notes."""
        await facade.insert_note(user.id, "Old", "")
        clock.advance(minutes=1)
        await facade.insert_note(user.id, "New", "")
        facade.current_user = user

        await workspace.start()
        await workspace.wait_idle()

        snapshot = workspace.snapshot()
        assert snapshot["session"]["user"] == user
        assert snapshot["auth_flow"] is None
        assert [note.title for note in snapshot["notes"]["collection"]] == ["New", "Old"]
        assert snapshot["notes"]["loading"] is False

    async def test_sign_in_disposes_auth_flow(self, workspace, facade, user):
        await workspace.start()
        flow = workspace.auth_flow

        result = await sign_in(workspace)

        assert result.success
        assert flow.disposed
        assert workspace.auth_flow is None
        assert workspace.notes.owner_id == user.id
        assert facade.call_count("list_notes") == 1

    async def test_otp_sign_in(self, workspace, facade, user):
        """Test the full one-time code path through the workspace."""
        await workspace.start()
        await workspace.auth_flow.request_otp("a@x.com")
        assert workspace.snapshot()["auth_flow"] == {"mode": AuthMode.OTP_VERIFY, "pending_email": "a@x.com"}

        await workspace.auth_flow.verify_otp(facade.otp_codes["a@x.com"][0])
        await workspace.wait_idle()

        assert workspace.snapshot()["session"]["user"] == user
        assert workspace.notes is not None

    async def test_sign_out_clears_everything(self, workspace, facade):
        """Test that sign-out drops notes, the editor and any pending save."""
        await sign_in(workspace)
        await workspace.create_note("Draft")
        workspace.editor.set_content("unsaved text")

        result = await workspace.sign_out()
        await asyncio.sleep(SETTLE)

        assert result.success
        snapshot = workspace.snapshot()
        assert snapshot["session"] == {"user": None, "loading": False}
        assert snapshot["notes"] is None
        assert snapshot["edit_session"] is None
        assert snapshot["auth_flow"]["mode"] == AuthMode.SIGN_IN
        assert facade.call_count("update_note") == 0

    async def test_switching_users_replaces_store(self, workspace, facade, user):
        await sign_in(workspace)
        await workspace.create_note("Mine")
        other = facade.add_user("b@x.com", "pw")

        facade.emit_session(other)
        await workspace.wait_idle()

        assert workspace.notes.owner_id == other.id
        assert workspace.notes.notes == []
        assert workspace.editor.draft is None

    async def test_close_stops_following_session(self, workspace, facade, user):
        await workspace.start()

        await workspace.close()
        facade.emit_session(user)

        assert workspace.session_manager.user is None
        assert workspace.notes is None


@pytest.mark.asyncio
class TestNoteOperations:
    """Note commands routed through the workspace."""

    async def test_requires_sign_in(self, workspace):
        """Test that note commands fail while signed out."""
        await workspace.start()

        created = await workspace.create_note()
        selected = workspace.select_note("anything")

        assert isinstance(created.error, AuthError)
        assert created.error_message == "Please sign in first"
        assert isinstance(selected.error, AuthError)
        assert workspace.search("x") == []

    async def test_create_opens_clean_draft(self, workspace, user):
        """Test that a new note is bound with equal server timestamps."""
        await sign_in(workspace)

        result = await workspace.create_note()

        assert result.data.title == "Untitled Note"
        assert workspace.editor.note_id == result.data.id
        assert not workspace.editor.dirty
        selected = workspace.selected_note
        assert selected.owner == user.id
        assert selected.created_at == selected.updated_at

    async def test_select_binds_note(self, workspace, clock):
        await sign_in(workspace)
        first = (await workspace.create_note("First", "one")).data
        clock.advance(minutes=1)
        await workspace.create_note("Second", "two")

        result = workspace.select_note(first.id)

        assert result.success
        assert workspace.editor.draft.title == "First"
        assert workspace.editor.draft.content == "one"

    async def test_select_unknown_note(self, workspace):
        await sign_in(workspace)

        result = workspace.select_note("does-not-exist")

        assert isinstance(result.error, NotFoundError)

    async def test_reselecting_keeps_unsaved_draft(self, workspace):
        """Test that selecting the bound note again does not reset the draft."""
        await sign_in(workspace)
        note = (await workspace.create_note("Keep")).data
        workspace.editor.set_content("typing")

        workspace.select_note(note.id)

        assert workspace.editor.draft.content == "typing"
        assert workspace.editor.dirty

    async def test_autosave_updates_collection(self, workspace, clock):
        """Test that the debounced save lands in the collection with a newer timestamp."""
        await sign_in(workspace)
        note = (await workspace.create_note("Journal")).data
        clock.advance(minutes=2)

        workspace.editor.set_content("Dear diary")
        await asyncio.sleep(SETTLE)
        await workspace.wait_idle()

        saved = workspace.selected_note
        assert saved.content == "Dear diary"
        assert saved.updated_at > note.updated_at
        assert workspace.snapshot()["edit_session"]["dirty"] is False

    async def test_delete_selected_note_unbinds_editor(self, workspace):
        await sign_in(workspace)
        note = (await workspace.create_note("Temporary")).data

        result = await workspace.delete_note(note.id)

        assert result.success
        assert workspace.editor.draft is None
        assert workspace.snapshot()["edit_session"] is None
        assert workspace.notes.notes == []

    async def test_pending_save_dropped_while_delete_in_flight(self, workspace, facade):
        """Test that no update is sent for a note whose delete is still pending."""
        await sign_in(workspace)
        note = (await workspace.create_note("Doomed")).data
        workspace.editor.set_content("last words")
        facade.hold("delete_note")

        deleting = asyncio.ensure_future(workspace.delete_note(note.id))
        await asyncio.sleep(SETTLE)
        assert facade.call_count("update_note") == 0

        facade.release("delete_note")
        result = await deleting
        await workspace.wait_idle()

        assert result.success
        assert facade.call_count("update_note") == 0
        assert workspace.editor.draft is None

    async def test_failed_delete_restarts_autosave(self, workspace, facade):
        """Test that the draft is still saved when the delete is rejected."""
        await sign_in(workspace)
        note = (await workspace.create_note("Keeper")).data
        workspace.editor.set_content("still here")
        facade.fail_next("delete_note")

        result = await workspace.delete_note(note.id)

        assert not result.success
        assert workspace.editor.note_id == note.id
        assert workspace.editor.autosave_pending
        await asyncio.sleep(SETTLE)
        await workspace.wait_idle()
        assert facade.notes[note.id].content == "still here"

    async def test_delete_through_store_unbinds_editor(self, workspace):
        """Test that the editor follows deletes that bypass the workspace."""
        await sign_in(workspace)
        note = (await workspace.create_note("Elsewhere")).data
        workspace.editor.set_content("typing")

        await workspace.notes.delete(note.id)
        await asyncio.sleep(SETTLE)

        assert workspace.editor.note_id is None
        assert workspace.editor.state.value.last_error is None

    async def test_delete_other_note_keeps_editor(self, workspace):
        await sign_in(workspace)
        other = (await workspace.create_note("Other")).data
        shown = (await workspace.create_note("Shown")).data

        await workspace.delete_note(other.id)

        assert workspace.editor.note_id == shown.id

    async def test_search(self, workspace):
        await sign_in(workspace)
        await workspace.create_note("Recipes", "Pancakes")
        await workspace.create_note("Todo", "buy flour")

        assert [note.title for note in workspace.search("pancake")] == ["Recipes"]
