"""
Supabase-backed Remote Service Facade.

This module maps the facade contract onto the Supabase auth API and the
``notes`` table, translating Supabase errors into ``RemoteServiceError``
kinds.
"""

import logging
from typing import Any, Dict, List, Optional

from supabase import AuthError as SupabaseAuthError, PostgrestAPIError

from ..config import get_config, AppConfig
from ..schemas.database_models import Note, UserIdentity
from ..utils.database import SupabaseClient, DatabaseConnectionError
from ..utils.exceptions import RemoteErrorKind, RemoteServiceError
from .facade import RemoteServiceFacade, SessionListener, Unsubscribe

logger = logging.getLogger(__name__)

EXPIRED_TOKEN_CODES = {"otp_expired"}
INVALID_CREDENTIAL_CODES = {"invalid_credentials"}


def classify_auth_error(error: Exception) -> RemoteErrorKind:
    """
    Derive the failure kind from a Supabase auth error.

    Error codes are preferred; older servers only report a message.
    """
    code = getattr(error, "code", None)
    message = str(getattr(error, "message", None) or error)

    if code in EXPIRED_TOKEN_CODES or "Token has expired" in message:
        return RemoteErrorKind.EXPIRED_TOKEN
    if "Invalid token" in message:
        return RemoteErrorKind.INVALID_TOKEN
    if code in INVALID_CREDENTIAL_CODES or "Invalid login credentials" in message:
        return RemoteErrorKind.INVALID_CREDENTIALS
    return RemoteErrorKind.GENERIC


def _user_from_session(session: Any) -> Optional[UserIdentity]:
    user = getattr(session, "user", None) if session else None
    if user is None:
        return None
    return UserIdentity(id=str(user.id), email=user.email)


class SupabaseFacade(RemoteServiceFacade):
    """
    Remote service facade over a Supabase project.
    """

    def __init__(self, db_client: Optional[SupabaseClient] = None, config: Optional[AppConfig] = None):
        self.config = config or get_config()
        self.db_client = db_client or SupabaseClient(self.config.supabase)
        self.table_name = self.config.supabase.notes_table
        self._connected = None

    async def _client(self):
        try:
            return await self.db_client.get_client()
        except DatabaseConnectionError as e:
            raise RemoteServiceError(str(e)) from e

    async def _auth_call(self, operation: str, call) -> Any:
        """Run an auth call and translate Supabase failures."""
        try:
            return await call
        except SupabaseAuthError as e:
            kind = classify_auth_error(e)
            logger.warning(f"[SupabaseFacade] {operation} failed ({kind.value}): {e}")
            raise RemoteServiceError(str(getattr(e, "message", None) or e), kind) from e
        except Exception as e:
            logger.error(f"[SupabaseFacade] {operation} error: {e}")
            raise RemoteServiceError(f"{operation} failed: {e}") from e

    async def _table_call(self, operation: str, query) -> List[Dict[str, Any]]:
        """Execute a PostgREST query and return its rows."""
        try:
            response = await query.execute()
        except PostgrestAPIError as e:
            logger.error(f"[SupabaseFacade] {operation} failed: {e.message}")
            raise RemoteServiceError(f"{operation} failed: {e.message}") from e
        except Exception as e:
            logger.error(f"[SupabaseFacade] {operation} error: {e}")
            raise RemoteServiceError(f"{operation} failed: {e}") from e
        return response.data or []

    # Session

    async def verify_session(self) -> Optional[UserIdentity]:
        client = await self._client()
        session = await self._auth_call("get_session", client.auth.get_session())
        return _user_from_session(session)

    async def connect(self) -> None:
        self._connected = await self._client()

    def subscribe(self, listener: SessionListener) -> Unsubscribe:
        if self._connected is None:
            raise RemoteServiceError("subscribe called before connect")

        def on_change(event, session) -> None:
            logger.debug(f"[SupabaseFacade] Auth event: {event}")
            listener(_user_from_session(session))

        subscription = self._connected.auth.on_auth_state_change(on_change)
        state = {"active": True}

        def unsubscribe() -> None:
            if state["active"]:
                state["active"] = False
                subscription.unsubscribe()

        return unsubscribe

    # Credentials

    async def sign_in_with_password(self, email: str, password: str) -> None:
        client = await self._client()
        await self._auth_call(
            "sign_in_with_password",
            client.auth.sign_in_with_password({"email": email, "password": password}),
        )

    async def sign_up(self, email: str, password: str) -> None:
        client = await self._client()
        credentials: Dict[str, Any] = {"email": email, "password": password}
        if self.config.auth.oauth_redirect_url:
            credentials["options"] = {"email_redirect_to": self.config.auth.oauth_redirect_url}
        await self._auth_call("sign_up", client.auth.sign_up(credentials))

    async def sign_in_with_oauth(self, provider: str) -> Optional[str]:
        client = await self._client()
        credentials: Dict[str, Any] = {"provider": provider}
        if self.config.auth.oauth_redirect_url:
            credentials["options"] = {"redirect_to": self.config.auth.oauth_redirect_url}
        response = await self._auth_call("sign_in_with_oauth", client.auth.sign_in_with_oauth(credentials))
        return getattr(response, "url", None)

    async def request_otp(self, email: str) -> None:
        client = await self._client()
        await self._auth_call(
            "sign_in_with_otp",
            client.auth.sign_in_with_otp({"email": email, "options": {"should_create_user": True}}),
        )

    async def verify_otp(self, email: str, code: str) -> None:
        client = await self._client()
        await self._auth_call(
            "verify_otp",
            client.auth.verify_otp({"email": email, "token": code, "type": "email"}),
        )

    async def sign_out(self) -> None:
        client = await self._client()
        await self._auth_call("sign_out", client.auth.sign_out())

    # Notes

    async def list_notes(self, owner_id: str) -> List[Note]:
        client = await self._client()
        rows = await self._table_call(
            "list_notes",
            client.table(self.table_name).select("*").eq("user_id", owner_id).order("updated_at", desc=True),
        )
        return [Note.model_validate(row) for row in rows]

    async def insert_note(self, owner_id: str, title: str, content: Optional[str]) -> Note:
        client = await self._client()
        rows = await self._table_call(
            "insert_note",
            client.table(self.table_name).insert({"user_id": owner_id, "title": title, "content": content}),
        )
        if not rows:
            raise RemoteServiceError("insert_note returned no row")
        return Note.model_validate(rows[0])

    async def update_note(self, note_id: str, changes: Dict[str, Any]) -> Note:
        client = await self._client()
        rows = await self._table_call(
            "update_note",
            client.table(self.table_name).update(changes).eq("id", note_id),
        )
        if not rows:
            raise RemoteServiceError(f"update_note matched no row for {note_id[:8]}")
        return Note.model_validate(rows[0])

    async def delete_note(self, note_id: str) -> None:
        client = await self._client()
        await self._table_call("delete_note", client.table(self.table_name).delete().eq("id", note_id))
