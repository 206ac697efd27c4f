"""
Remote Service Facade contract.

The client core consumes authentication and note persistence through this
interface only. Implementations raise ``RemoteServiceError`` on failure,
tagging expired and invalid one-time codes and rejected credentials so the
session layer can tell them apart from generic failures.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

from ..schemas.database_models import Note, UserIdentity

SessionListener = Callable[[Optional[UserIdentity]], None]
Unsubscribe = Callable[[], None]


class RemoteServiceFacade(ABC):
    """Opaque boundary to the auth and note storage backend."""

    # Session

    async def connect(self) -> None:
        """Open the backend connection. Called once before ``subscribe``."""

    @abstractmethod
    async def verify_session(self) -> Optional[UserIdentity]:
        """Return the user of the currently stored session, if any."""

    @abstractmethod
    def subscribe(self, listener: SessionListener) -> Unsubscribe:
        """
        Register for session-change notifications.

        ``listener`` receives the new user, or None, on every auth
        transition, in the order the transitions happen.
        """

    # Credentials

    @abstractmethod
    async def sign_in_with_password(self, email: str, password: str) -> None:
        ...

    @abstractmethod
    async def sign_up(self, email: str, password: str) -> None:
        ...

    @abstractmethod
    async def sign_in_with_oauth(self, provider: str) -> Optional[str]:
        """Start a redirect flow; returns the URL to open, when there is one."""

    @abstractmethod
    async def request_otp(self, email: str) -> None:
        ...

    @abstractmethod
    async def verify_otp(self, email: str, code: str) -> None:
        ...

    @abstractmethod
    async def sign_out(self) -> None:
        ...

    # Notes

    @abstractmethod
    async def list_notes(self, owner_id: str) -> List[Note]:
        ...

    @abstractmethod
    async def insert_note(self, owner_id: str, title: str, content: Optional[str]) -> Note:
        ...

    @abstractmethod
    async def update_note(self, note_id: str, changes: Dict[str, Any]) -> Note:
        ...

    @abstractmethod
    async def delete_note(self, note_id: str) -> None:
        ...
