"""
In-memory Remote Service Facade.

A self-contained backend for local development and tests. It keeps users,
one-time codes and notes in process memory, emits session-change
notifications the way the hosted auth service does, and supports failure
injection and call gating so callers can exercise in-flight behaviour.
"""

import asyncio
import logging
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..schemas.database_models import Note, UserIdentity
from ..utils.exceptions import RemoteErrorKind, RemoteServiceError
from .facade import RemoteServiceFacade, SessionListener, Unsubscribe

logger = logging.getLogger(__name__)

DEFAULT_OTP_TTL = timedelta(minutes=5)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryFacade(RemoteServiceFacade):
    """Process-local auth and note storage."""

    def __init__(
        self,
        clock: Callable[[], datetime] = _utcnow,
        otp_ttl: timedelta = DEFAULT_OTP_TTL,
        oauth_url: str = "https://auth.example.invalid/authorize",
    ):
        self.clock = clock
        self.otp_ttl = otp_ttl
        self.oauth_url = oauth_url

        self.users: Dict[str, Tuple[str, UserIdentity]] = {}
        self.otp_codes: Dict[str, Tuple[str, datetime]] = {}
        self.notes: Dict[str, Note] = {}
        self.current_user: Optional[UserIdentity] = None

        self.calls: List[Tuple[str, Tuple[Any, ...]]] = []
        self._listeners: List[SessionListener] = []
        self._failures: Dict[str, RemoteServiceError] = {}
        self._gates: Dict[str, asyncio.Event] = {}

    # Test and development hooks

    def add_user(self, email: str, password: str) -> UserIdentity:
        user = UserIdentity(id=str(uuid.uuid4()), email=email)
        self.users[user.email] = (password, user)
        return user

    def fail_next(self, operation: str, message: str = "Service unavailable",
                  kind: RemoteErrorKind = RemoteErrorKind.GENERIC) -> None:
        """Make the next call to ``operation`` raise."""
        self._failures[operation] = RemoteServiceError(message, kind)

    def hold(self, operation: str) -> asyncio.Event:
        """
        Block calls to ``operation`` until the returned event is set.

        The gate stays in place for every call until ``release`` is called.
        """
        gate = asyncio.Event()
        self._gates[operation] = gate
        return gate

    def release(self, operation: str) -> None:
        gate = self._gates.pop(operation, None)
        if gate is not None:
            gate.set()

    def call_count(self, operation: str) -> int:
        return sum(1 for name, _ in self.calls if name == operation)

    def emit_session(self, user: Optional[UserIdentity]) -> None:
        """Change the stored session and notify listeners, in order."""
        self.current_user = user
        for listener in list(self._listeners):
            listener(user)

    async def _enter(self, operation: str, *args: Any) -> None:
        self.calls.append((operation, args))
        gate = self._gates.get(operation)
        if gate is not None:
            await gate.wait()
        else:
            await asyncio.sleep(0)
        failure = self._failures.pop(operation, None)
        if failure is not None:
            raise failure

    # Session

    async def verify_session(self) -> Optional[UserIdentity]:
        await self._enter("verify_session")
        return self.current_user

    def subscribe(self, listener: SessionListener) -> Unsubscribe:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # Credentials

    async def sign_in_with_password(self, email: str, password: str) -> None:
        await self._enter("sign_in_with_password", email)
        entry = self.users.get(email.strip().lower())
        if entry is None or entry[0] != password:
            raise RemoteServiceError("Invalid login credentials", RemoteErrorKind.INVALID_CREDENTIALS)
        self.emit_session(entry[1])

    async def sign_up(self, email: str, password: str) -> None:
        await self._enter("sign_up", email)
        if email.strip().lower() in self.users:
            raise RemoteServiceError("User already registered")
        user = self.add_user(email, password)
        self.emit_session(user)

    async def sign_in_with_oauth(self, provider: str) -> Optional[str]:
        await self._enter("sign_in_with_oauth", provider)
        return f"{self.oauth_url}?provider={provider}"

    async def request_otp(self, email: str) -> None:
        await self._enter("request_otp", email)
        code = f"{secrets.randbelow(10 ** 6):06d}"
        self.otp_codes[email.strip().lower()] = (code, self.clock() + self.otp_ttl)
        logger.debug(f"[InMemoryFacade] Issued OTP for {email}")

    async def verify_otp(self, email: str, code: str) -> None:
        await self._enter("verify_otp", email, code)
        key = email.strip().lower()
        issued = self.otp_codes.get(key)
        if issued is None or issued[0] != code:
            raise RemoteServiceError("Invalid token", RemoteErrorKind.INVALID_TOKEN)
        if self.clock() >= issued[1]:
            raise RemoteServiceError("Token has expired or is invalid", RemoteErrorKind.EXPIRED_TOKEN)
        del self.otp_codes[key]
        entry = self.users.get(key)
        user = entry[1] if entry else self.add_user(key, secrets.token_urlsafe(16))
        self.emit_session(user)

    async def sign_out(self) -> None:
        await self._enter("sign_out")
        self.emit_session(None)

    # Notes

    async def list_notes(self, owner_id: str) -> List[Note]:
        await self._enter("list_notes", owner_id)
        owned = [note for note in self.notes.values() if note.owner == owner_id]
        return sorted(owned, key=lambda note: note.updated_at, reverse=True)

    async def insert_note(self, owner_id: str, title: str, content: Optional[str]) -> Note:
        await self._enter("insert_note", owner_id, title, content)
        now = self.clock()
        note = Note(id=str(uuid.uuid4()), title=title, content=content,
                    created_at=now, updated_at=now, owner=owner_id)
        self.notes[note.id] = note
        return note.model_copy()

    async def update_note(self, note_id: str, changes: Dict[str, Any]) -> Note:
        await self._enter("update_note", note_id, dict(changes))
        existing = self.notes.get(note_id)
        if existing is None:
            raise RemoteServiceError(f"Note {note_id} not found")
        allowed = {key: value for key, value in changes.items() if key in ("title", "content")}
        updated_at = max(self.clock(), existing.updated_at)
        note = existing.model_copy(update={**allowed, "updated_at": updated_at})
        self.notes[note_id] = note
        return note.model_copy()

    async def delete_note(self, note_id: str) -> None:
        await self._enter("delete_note", note_id)
        self.notes.pop(note_id, None)
