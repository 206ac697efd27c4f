"""
Note Collection Store.

This module owns the signed-in user's notes. Every mutation waits for the
remote service to acknowledge it before touching local state, so the
server's ``updated_at`` stays authoritative.
"""

import logging
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from ..schemas.database_models import Note, NoteUpdate
from ..schemas.state_schemas import OperationResult
from ..utils.exceptions import NotFoundError, PersistenceError, RemoteServiceError
from ..utils.observable import Observable
from .facade import RemoteServiceFacade

logger = logging.getLogger(__name__)


def _by_recency(notes: List[Note]) -> List[Note]:
    return sorted(notes, key=lambda note: note.updated_at, reverse=True)


class NoteCollectionState(BaseModel):
    """Published view of the collection, most recently updated first."""
    model_config = ConfigDict(frozen=True)

    notes: List[Note] = []
    loading: bool = False

    def get(self, note_id: str) -> Optional[Note]:
        return next((note for note in self.notes if note.id == note_id), None)


class NoteCollectionStore:
    """
    Repository-style owner of the note collection.

    Provides load/create/update/delete against the remote facade and a
    case-insensitive search over the loaded notes.
    """

    def __init__(self, facade: RemoteServiceFacade, owner_id: str):
        """
        Initialize the store.

        Args:
            facade: Remote service used for persistence
            owner_id: Id of the signed-in user whose notes this store holds
        """
        self.facade = facade
        self.owner_id = owner_id
        self.state: Observable[NoteCollectionState] = Observable(NoteCollectionState(), name="notes")
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    def notes(self) -> List[Note]:
        return self.state.value.notes

    @property
    def loading(self) -> bool:
        return self.state.value.loading

    def get(self, note_id: str) -> Optional[Note]:
        return self.state.value.get(note_id)

    def _publish(self, notes: List[Note]) -> None:
        self.state.update(notes=_by_recency(notes))

    async def load(self) -> OperationResult:
        """
        Fetch all notes for the owner.

        Returns:
            Result carrying the notes, newest first. On failure the previous
            collection is kept.
        """
        self.state.update(loading=True)
        try:
            notes = await self.facade.list_notes(self.owner_id)
        except RemoteServiceError as e:
            self._logger.error(f"Failed to load notes for {self.owner_id[:8]}: {e}")
            return OperationResult.fail(PersistenceError(f"Load failed: {e}", "Failed to load notes"))
        finally:
            self.state.update(loading=False)

        self._publish(list(notes))
        self._logger.info(f"Loaded {len(notes)} notes for {self.owner_id[:8]}")
        return OperationResult.ok(self.notes)

    async def create(self, title: str, content: Optional[str] = "") -> OperationResult:
        """
        Insert a note and append the server's copy.

        Returns:
            Result carrying the created Note.
        """
        try:
            note = await self.facade.insert_note(self.owner_id, title, content)
        except RemoteServiceError as e:
            self._logger.error(f"Failed to create note: {e}")
            return OperationResult.fail(PersistenceError(f"Create failed: {e}", "Failed to create note"))

        self._publish([*self.notes, note])
        self._logger.info(f"Created note {note.id[:8]}")
        return OperationResult.ok(note)

    async def update(self, note_id: str, title: Optional[str] = None, content: Optional[str] = None) -> OperationResult:
        """
        Apply a partial update and replace the entry with the server's copy.

        Returns:
            Result carrying the updated Note, or a NotFoundError if the id is
            not in the collection (no remote call is made).
        """
        if self.get(note_id) is None:
            return OperationResult.fail(NotFoundError(f"Note {note_id[:8]} is not in the collection"))

        changes = NoteUpdate(**{
            key: value for key, value in (("title", title), ("content", content)) if value is not None
        }).to_changes()

        try:
            updated = await self.facade.update_note(note_id, changes)
        except RemoteServiceError as e:
            self._logger.error(f"Failed to update note {note_id[:8]}: {e}")
            return OperationResult.fail(PersistenceError(f"Update failed: {e}"))

        if self.get(note_id) is None:
            # Deleted locally while the update was in flight.
            self._logger.debug(f"Dropping update result for removed note {note_id[:8]}")
            return OperationResult.ok(updated)

        self._publish([updated if note.id == note_id else note for note in self.notes])
        self._logger.debug(f"Updated note {note_id[:8]} at {updated.updated_at.isoformat()}")
        return OperationResult.ok(updated)

    async def delete(self, note_id: str) -> OperationResult:
        """
        Delete a note remotely, then locally. Absent ids are a no-op.
        """
        if self.get(note_id) is None:
            return OperationResult.ok(None)

        try:
            await self.facade.delete_note(note_id)
        except RemoteServiceError as e:
            self._logger.error(f"Failed to delete note {note_id[:8]}: {e}")
            return OperationResult.fail(PersistenceError(f"Delete failed: {e}", "Failed to delete note"))

        self._publish([note for note in self.notes if note.id != note_id])
        self._logger.info(f"Deleted note {note_id[:8]}")
        return OperationResult.ok(None)

    def search(self, query: str) -> List[Note]:
        """Notes whose title or content contains ``query``, ignoring case."""
        if not query:
            return list(self.notes)
        return [note for note in self.notes if note.matches(query)]

    def clear(self) -> None:
        self.state.set(NoteCollectionState())
