"""
Note Edit Session.

Per-selected-note controller that keeps the local draft responsive while
saving in the background. Lifecycle of a binding:

    Clean -> Dirty -> Saving -> Clean
                      Saving -> Dirty   (edits arrived while the save was in flight)

Saves are debounced on the trailing edge. At most one save is in flight per
binding; a save that completes after the session was rebound or unbound is
discarded. The session unbinds itself when its note leaves the store's
collection, whichever path removed it.
"""

import asyncio
import logging
from typing import Optional, Set, Tuple

from pydantic import BaseModel, ConfigDict

from ..config import EditorConfig, get_config
from ..schemas.database_models import Note
from ..schemas.state_schemas import EditDraft, OperationResult
from ..utils.debounce import Debouncer
from ..utils.exceptions import QuillQuiverError
from ..utils.observable import Observable
from .note_store import NoteCollectionState, NoteCollectionStore

logger = logging.getLogger(__name__)


class EditSessionState(BaseModel):
    """Published editor state; ``draft`` is None while no note is bound."""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    draft: Optional[EditDraft] = None
    last_error: Optional[QuillQuiverError] = None


class NoteEditSession:
    """Draft, dirty tracking and debounced auto-save for one bound note."""

    def __init__(self, store: NoteCollectionStore, editor_config: Optional[EditorConfig] = None):
        self.store = store
        self.config = editor_config or get_config().editor
        self.state: Observable[EditSessionState] = Observable(EditSessionState(), name="edit_session")

        self._debouncer = Debouncer(self.config.autosave_delay_seconds, self._on_debounce, name="autosave")
        self._generation = 0
        self._synced: Tuple[str, str] = ("", "")
        self._inflight: Optional[Tuple[int, asyncio.Future]] = None
        self._tasks: Set[asyncio.Task] = set()
        self._unsubscribe_store = store.state.subscribe(self._on_collection_change)

    # Read side

    @property
    def draft(self) -> Optional[EditDraft]:
        return self.state.value.draft

    @property
    def note_id(self) -> Optional[str]:
        return self.draft.note_id if self.draft else None

    @property
    def dirty(self) -> bool:
        return bool(self.draft and self.draft.dirty)

    @property
    def saving(self) -> bool:
        return bool(self.draft and self.draft.saving)

    @property
    def last_synced(self) -> Tuple[str, str]:
        """(title, content) as last acknowledged by the store."""
        return self._synced

    @property
    def autosave_pending(self) -> bool:
        return self._debouncer.pending

    def _is_dirty(self, title: str, content: str) -> bool:
        return (title, content) != self._synced

    def _set_draft(self, **changes) -> None:
        if self.draft is None:
            return
        self.state.update(draft=self.draft.model_copy(update=changes))

    # Binding

    def bind(self, note: Note) -> None:
        """Shadow ``note``; drops any pending auto-save of the previous binding."""
        self._debouncer.cancel()
        self._generation += 1
        self._synced = (note.title, note.content_text)
        self.state.set(EditSessionState(draft=EditDraft(
            note_id=note.id,
            title=note.title,
            content=note.content_text,
        )))
        logger.debug(f"[EditSession] Bound note {note.id[:8]} (generation {self._generation})")

    def unbind(self) -> None:
        """Release the note. An in-flight save finishes but its result is ignored."""
        self._debouncer.cancel()
        self._generation += 1
        self._synced = ("", "")
        self.state.set(EditSessionState())
        logger.debug("[EditSession] Unbound")

    def _on_collection_change(self, collection: NoteCollectionState) -> None:
        note_id = self.note_id
        if note_id is not None and collection.get(note_id) is None:
            logger.info(f"[EditSession] Note {note_id[:8]} left the collection; unbinding")
            self.unbind()

    # Editing

    def set_title(self, title: str) -> None:
        self._edit(title=title)

    def set_content(self, content: str) -> None:
        self._edit(content=content)

    def _edit(self, **changes) -> None:
        draft = self.draft
        if draft is None:
            return
        title = changes.get("title", draft.title)
        content = changes.get("content", draft.content)
        dirty = self._is_dirty(title, content)
        self._set_draft(title=title, content=content, dirty=dirty)
        if dirty:
            self._debouncer.trigger()
        else:
            self._debouncer.cancel()

    # Saving

    def cancel_autosave(self) -> None:
        """Drop the pending auto-save window, if any."""
        self._debouncer.cancel()

    def resume_autosave(self) -> None:
        """Start a new auto-save window if the draft has unsaved changes."""
        if self.dirty:
            self._debouncer.trigger()

    def _current_inflight(self) -> Optional[asyncio.Future]:
        if self._inflight is not None and self._inflight[0] == self._generation:
            return self._inflight[1]
        return None

    def _on_debounce(self) -> None:
        if self._current_inflight() is not None:
            # The running save reschedules when it finishes if still dirty.
            return
        task = asyncio.ensure_future(self._save_now())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def save(self) -> OperationResult:
        """
        Save the draft now, bypassing the debounce window.

        Waits for a save already in flight for this binding instead of
        running beside it, then saves whatever is still dirty.
        """
        generation = self._generation
        inflight = self._current_inflight()
        while inflight is not None:
            await asyncio.shield(inflight)
            inflight = self._current_inflight()
        if generation != self._generation:
            return OperationResult.ok(None)
        self._debouncer.cancel()
        return await self._save_now()

    async def _save_now(self) -> OperationResult:
        draft = self.draft
        if draft is None or not draft.dirty:
            return OperationResult.ok(None)

        generation = self._generation
        note_id, title, content = draft.note_id, draft.title, draft.content
        done = asyncio.get_running_loop().create_future()
        self._inflight = (generation, done)
        self._set_draft(saving=True)
        self.state.update(last_error=None)
        logger.debug(f"[EditSession] Saving note {note_id[:8]}")

        try:
            result = await self.store.update(note_id, title=title, content=content)
        finally:
            if self._inflight is not None and self._inflight[1] is done:
                self._inflight = None
            done.set_result(None)

        if generation != self._generation:
            logger.debug(f"[EditSession] Discarding save result for note {note_id[:8]}")
            return result

        if result.success:
            self._synced = (title, content)
            current = self.draft
            still_dirty = self._is_dirty(current.title, current.content)
            self._set_draft(saving=False, dirty=still_dirty)
            if still_dirty:
                logger.debug(f"[EditSession] Note {note_id[:8]} changed during save; rescheduling")
                self._debouncer.trigger()
        else:
            current = self.draft
            self._set_draft(saving=False, dirty=self._is_dirty(current.title, current.content))
            self.state.update(last_error=result.error)
            logger.warning(f"[EditSession] Save failed for note {note_id[:8]}: {result.error}")
        return result

    async def wait_idle(self) -> None:
        """Wait for auto-save tasks and any in-flight save to finish."""
        while self._tasks or self._inflight is not None:
            if self._tasks:
                await asyncio.gather(*list(self._tasks))
            if self._inflight is not None:
                await asyncio.shield(self._inflight[1])

    def close(self) -> None:
        self._unsubscribe_store()
        self.unbind()
