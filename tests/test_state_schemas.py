"""
Unit tests for the note, identity and client state schemas.

Tests cover:
- Note row mapping and timestamp validation
- Search matching
- Session status derivation
- Draft word and character counts
- Operation result helpers
"""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError as PydanticValidationError

from quillquiver.schemas.database_models import Note, NoteUpdate, UserIdentity
from quillquiver.schemas.state_schemas import (
    AuthFlowState,
    AuthMode,
    EditDraft,
    OperationResult,
    SessionState,
    SessionStatus,
)
from quillquiver.utils.exceptions import InvalidCredentialsError, ValidationError

CREATED = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)


class TestNote:
    """Test the Note row model."""

    def test_maps_user_id_column_to_owner(self):
        note = Note.model_validate({
            "id": "n1",
            "title": "Groceries",
            "content": None,
            "created_at": CREATED,
            "updated_at": CREATED,
            "user_id": "u1",
        })

        assert note.owner == "u1"
        assert note.content_text == ""

    def test_rejects_updated_before_created(self):
        """Test that a note cannot have been updated before it existed."""
        with pytest.raises(PydanticValidationError):
            Note(id="n1", created_at=CREATED, updated_at=CREATED - timedelta(seconds=1), owner="u1")

    def test_matches_title_or_content_ignoring_case(self):
        note = Note(id="n1", title="Trip to Lisbon", content="Book the FERRY",
                    created_at=CREATED, updated_at=CREATED, owner="u1")

        assert note.matches("lisbon")
        assert note.matches("ferry")
        assert not note.matches("porto")

    def test_note_update_only_carries_set_fields(self):
        assert NoteUpdate(title="New").to_changes() == {"title": "New"}
        assert NoteUpdate(content="").to_changes() == {"content": ""}


class TestUserIdentity:

    def test_email_is_normalized(self):
        assert UserIdentity(id="u1", email="  Alice@Example.COM ").email == "alice@example.com"


class TestSessionState:
    """Test the session projection."""

    def test_default_is_loading(self):
        assert SessionState().status == SessionStatus.LOADING

    def test_resolved_states(self):
        user = UserIdentity(id="u1", email="a@x.com")

        assert SessionState.resolved(user).status == SessionStatus.AUTHENTICATED
        assert SessionState.resolved(None).status == SessionStatus.ANONYMOUS

    def test_is_immutable(self):
        with pytest.raises(PydanticValidationError):
            SessionState().loading = False


class TestAuthFlowState:

    def test_defaults(self):
        state = AuthFlowState()

        assert state.mode == AuthMode.SIGN_IN
        assert state.pending_email == ""
        assert state.otp_input_epoch == 0

    def test_mode_values(self):
        assert [mode.value for mode in AuthMode] == ["signin", "signup", "otp"]


class TestEditDraft:

    @pytest.mark.parametrize("content,words", [
        ("", 0),
        ("one", 1),
        ("  two   words ", 2),
        ("line one\nline two", 4),
    ])
    def test_word_count(self, content, words):
        assert EditDraft(note_id="n1", content=content).word_count == words

    def test_char_count(self):
        assert EditDraft(note_id="n1", content="héllo").char_count == 5


class TestOperationResult:
    """Test the success/failure result helpers."""

    def test_ok(self):
        result = OperationResult.ok([1, 2])

        assert result.success
        assert result.data == [1, 2]
        assert result.error is None
        assert result.error_message is None

    def test_fail_exposes_user_message(self):
        result = OperationResult.fail(InvalidCredentialsError("Invalid login credentials"))

        assert not result.success
        assert result.error_message == "Invalid login credentials"

    def test_default_user_message(self):
        result = OperationResult.fail(InvalidCredentialsError())

        assert result.error_message == "Please check your email and password"

    def test_separate_user_message(self):
        result = OperationResult.fail(ValidationError("empty password", "Please fill in all fields"))

        assert str(result.error) == "empty password"
        assert result.error_message == "Please fill in all fields"
