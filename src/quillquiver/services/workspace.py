"""
Workspace coordinator.

Composes the session manager, auth flow, note store and edit session the
way the application shell uses them, and reacts to session changes:

- signed out: an ``AuthFlowController`` exists, notes are cleared, the
  editor is unbound and its pending auto-save cancelled;
- signed in: the auth flow is disposed, a ``NoteCollectionStore`` and a
  ``NoteEditSession`` are created for the user and notes are loaded.

``snapshot()`` is the single read model handed to the presentation layer.
"""

import asyncio
import logging
from typing import Any, Dict, Optional, Set

from ..config import AppConfig, get_config
from ..schemas.database_models import Note
from ..schemas.state_schemas import OperationResult, SessionState
from ..utils.exceptions import AuthError, NotFoundError
from .auth_flow import AuthFlowController
from .edit_session import NoteEditSession
from .facade import RemoteServiceFacade
from .note_store import NoteCollectionStore
from .session_manager import SessionManager

logger = logging.getLogger(__name__)


class Workspace:
    """Client-side composition root for one running application."""

    def __init__(self, facade: RemoteServiceFacade, config: Optional[AppConfig] = None):
        self.config = config or get_config()
        self.facade = facade
        self.session_manager = SessionManager(facade, self.config.auth)
        self.auth_flow: Optional[AuthFlowController] = None
        self.notes: Optional[NoteCollectionStore] = None
        self.editor: Optional[NoteEditSession] = None

        self._tasks: Set[asyncio.Task] = set()
        self._unsubscribe_session = self.session_manager.state.subscribe(self._on_session)

    # Lifecycle

    async def start(self) -> OperationResult:
        return await self.session_manager.start()

    async def close(self) -> None:
        """Detach from the backend after letting pending work settle."""
        await self.wait_idle()
        self._unsubscribe_session()
        self.session_manager.close()
        if self.editor is not None:
            self.editor.close()

    async def wait_idle(self) -> None:
        """Wait for background note loads and auto-saves to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))
        if self.editor is not None:
            await self.editor.wait_idle()

    def _spawn(self, coro) -> None:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _on_session(self, session: SessionState) -> None:
        if session.loading:
            return

        if session.user is None:
            self._enter_signed_out()
            return

        if self.notes is not None and self.notes.owner_id == session.user.id:
            return

        self._enter_signed_out()
        if self.auth_flow is not None:
            self.auth_flow.dispose()
            self.auth_flow = None
        self.notes = NoteCollectionStore(self.facade, session.user.id)
        self.editor = NoteEditSession(self.notes, self.config.editor)
        logger.info(f"[Workspace] Signed in as {session.user.id[:8]}; loading notes")
        self._spawn(self.notes.load())

    def _enter_signed_out(self) -> None:
        if self.editor is not None:
            self.editor.close()
            self.editor = None
        if self.notes is not None:
            self.notes.clear()
            self.notes = None
        if self.auth_flow is None and self.session_manager.user is None:
            self.auth_flow = AuthFlowController(self.session_manager)

    # Note operations

    def _require_notes(self) -> Optional[OperationResult]:
        if self.notes is None or self.editor is None:
            return OperationResult.fail(AuthError("No signed-in user", "Please sign in first"))
        return None

    async def create_note(self, title: Optional[str] = None, content: str = "") -> OperationResult:
        """Create a note and open it in the editor."""
        rejected = self._require_notes()
        if rejected:
            return rejected
        result = await self.notes.create(title if title is not None else self.config.editor.default_note_title, content)
        if result.success and self.editor is not None:
            self.editor.bind(result.data)
        return result

    def select_note(self, note_id: str) -> OperationResult:
        rejected = self._require_notes()
        if rejected:
            return rejected
        note = self.notes.get(note_id)
        if note is None:
            return OperationResult.fail(NotFoundError(f"Note {note_id[:8]} is not in the collection"))
        if self.editor.note_id != note_id:
            self.editor.bind(note)
        return OperationResult.ok(note)

    async def delete_note(self, note_id: str) -> OperationResult:
        """
        Delete a note.

        A pending auto-save of that note is dropped before the remote call;
        the editor unbinds once the note leaves the collection. If the delete
        fails the auto-save window restarts.
        """
        rejected = self._require_notes()
        if rejected:
            return rejected
        editor = self.editor
        shown = editor.note_id == note_id
        if shown:
            editor.cancel_autosave()
        result = await self.notes.delete(note_id)
        if not result.success and shown and editor.note_id == note_id:
            editor.resume_autosave()
        return result

    def search(self, query: str):
        return self.notes.search(query) if self.notes is not None else []

    @property
    def selected_note(self) -> Optional[Note]:
        """Collection entry of the note in the editor, with server timestamps."""
        if self.editor is None or self.editor.note_id is None or self.notes is None:
            return None
        return self.notes.get(self.editor.note_id)

    async def sign_out(self) -> OperationResult:
        if self.editor is not None:
            self.editor.unbind()
        return await self.session_manager.sign_out()

    # Read model

    def snapshot(self) -> Dict[str, Any]:
        session = self.session_manager.session
        snapshot: Dict[str, Any] = {
            "session": {"user": session.user, "loading": session.loading},
            "auth_flow": None,
            "notes": None,
            "edit_session": None,
        }
        if self.auth_flow is not None:
            flow = self.auth_flow.state.value
            snapshot["auth_flow"] = {"mode": flow.mode, "pending_email": flow.pending_email}
        if self.notes is not None:
            snapshot["notes"] = {"collection": list(self.notes.notes), "loading": self.notes.loading}
        if self.editor is not None and self.editor.draft is not None:
            draft = self.editor.draft
            snapshot["edit_session"] = {"draft": draft, "dirty": draft.dirty, "saving": draft.saving}
        return snapshot
