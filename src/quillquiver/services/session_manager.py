"""
Session Manager.

Owns the current-user state and mediates the password, OAuth and one-time
code sign-in paths plus sign-out. The facade's session-change stream is the
only thing that moves the session between users; operation results only
report whether a request was accepted.
"""

import logging
import re
from typing import Awaitable, Callable, Optional

from ..config import AuthConfig, get_config
from ..schemas.database_models import UserIdentity
from ..schemas.state_schemas import OperationResult, SessionState
from ..utils.exceptions import (
    AuthError,
    RemoteServiceError,
    ValidationError,
    auth_error_from_remote,
)
from ..utils.observable import Observable
from .facade import RemoteServiceFacade

logger = logging.getLogger(__name__)

OTP_LENGTH = 6
OTP_PATTERN = re.compile(rf"[0-9]{{{OTP_LENGTH}}}")


def _mask_email(email: str) -> str:
    name, _, domain = email.partition("@")
    return f"{name[:2]}***@{domain}" if domain else "***"


class SessionManager:
    """
    Single writer of the ``SessionState`` projection.

    Subscribes once to the facade's session-change stream in ``start()`` and
    applies notifications in the order received. Every operation is
    asynchronous and returns an ``OperationResult`` instead of raising.
    """

    def __init__(self, facade: RemoteServiceFacade, auth_config: Optional[AuthConfig] = None):
        self.facade = facade
        self.config = auth_config or get_config().auth
        self.state: Observable[SessionState] = Observable(SessionState(), name="session")
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._notified = False

    @property
    def session(self) -> SessionState:
        return self.state.value

    @property
    def user(self) -> Optional[UserIdentity]:
        return self.state.value.user

    # Lifecycle

    async def start(self) -> OperationResult:
        """
        Subscribe to session changes and resolve the initial session.

        Calling ``start`` again while subscribed is a no-op. A notification
        that arrives before the initial lookup resolves wins over it.
        """
        if self._unsubscribe is not None:
            return OperationResult.ok(self.user)

        try:
            await self.facade.connect()
            self._unsubscribe = self.facade.subscribe(self._on_session_change)
            user = await self.facade.verify_session()
        except RemoteServiceError as e:
            logger.error(f"[SessionManager] Initial session lookup failed: {e}")
            if not self._notified:
                self.state.set(SessionState.resolved(None))
            return OperationResult.fail(AuthError(str(e)))

        if not self._notified:
            self.state.set(SessionState.resolved(user))
        logger.info(f"[SessionManager] Session resolved: {'user ' + self.user.id[:8] if self.user else 'anonymous'}")
        return OperationResult.ok(self.user)

    def close(self) -> None:
        """Stop listening for session changes."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_session_change(self, user: Optional[UserIdentity]) -> None:
        self._notified = True
        logger.debug(f"[SessionManager] Session change: {user.id[:8] if user else 'signed out'}")
        self.state.set(SessionState.resolved(user))

    # Operations

    async def _delegate(self, operation: str, call: Callable[[], Awaitable]) -> OperationResult:
        try:
            data = await call()
        except RemoteServiceError as e:
            error = auth_error_from_remote(e)
            logger.warning(f"[SessionManager] {operation} rejected: {type(error).__name__}: {e}")
            return OperationResult.fail(error)
        except Exception as e:
            logger.exception(f"[SessionManager] {operation} failed unexpectedly")
            return OperationResult.fail(AuthError(f"{operation} failed: {e}", "An unexpected error occurred"))
        return OperationResult.ok(data)

    @staticmethod
    def _require_credentials(email: str, password: str) -> Optional[ValidationError]:
        if not email or not email.strip() or not password:
            return ValidationError("Missing email or password", "Please fill in all fields")
        return None

    async def sign_in_with_password(self, email: str, password: str) -> OperationResult:
        invalid = self._require_credentials(email, password)
        if invalid:
            return OperationResult.fail(invalid)
        logger.info(f"[SessionManager] Password sign-in for {_mask_email(email)}")
        return await self._delegate(
            "sign_in_with_password",
            lambda: self.facade.sign_in_with_password(email.strip(), password),
        )

    async def sign_up(self, email: str, password: str) -> OperationResult:
        invalid = self._require_credentials(email, password)
        if invalid:
            return OperationResult.fail(invalid)
        logger.info(f"[SessionManager] Sign-up for {_mask_email(email)}")
        return await self._delegate("sign_up", lambda: self.facade.sign_up(email.strip(), password))

    async def sign_in_with_oauth(self, provider: Optional[str] = None) -> OperationResult:
        """
        Start a redirect-based sign-in.

        The result data is the URL to open, when the backend returns one.
        Completion arrives later through the session-change stream.
        """
        provider = provider or self.config.oauth_provider
        logger.info(f"[SessionManager] OAuth sign-in via {provider}")
        return await self._delegate("sign_in_with_oauth", lambda: self.facade.sign_in_with_oauth(provider))

    async def request_otp(self, email: str) -> OperationResult:
        if not email or not email.strip():
            return OperationResult.fail(ValidationError("Missing email", "Please enter your email first"))
        email = email.strip()
        logger.info(f"[SessionManager] OTP requested for {_mask_email(email)}")
        return await self._delegate("request_otp", lambda: self.facade.request_otp(email))

    async def verify_otp(self, email: str, code: str) -> OperationResult:
        if not code or not OTP_PATTERN.fullmatch(code):
            return OperationResult.fail(ValidationError(
                f"OTP must be {OTP_LENGTH} digits",
                f"Please enter a valid {OTP_LENGTH}-digit OTP",
            ))
        return await self._delegate("verify_otp", lambda: self.facade.verify_otp(email, code))

    async def sign_out(self) -> OperationResult:
        """Clear the session whatever the backend says; report its failure."""
        result = await self._delegate("sign_out", self.facade.sign_out)
        self.state.set(SessionState.resolved(None))
        if not result.success:
            return OperationResult.fail(AuthError(str(result.error), "Failed to sign out"))
        return result
