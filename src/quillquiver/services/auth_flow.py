"""
Auth Mode Controller.

State machine behind the unauthenticated shell: which credential form is
shown (sign-in, sign-up or OTP entry) and which email an OTP was sent to.

Transitions:
    SIGN_IN  -> SIGN_UP     switch_to_sign_up()
    SIGN_UP  -> SIGN_IN     switch_to_sign_in()
    SIGN_IN  -> OTP_VERIFY  request_otp(email) succeeded
    SIGN_UP  -> OTP_VERIFY  request_otp(email) succeeded
    OTP_VERIFY -> SIGN_IN   back()
"""

import logging
from typing import Optional

from ..schemas.state_schemas import AuthFlowState, AuthMode, OperationResult
from ..utils.exceptions import AuthError, ValidationError
from ..utils.observable import Observable
from .session_manager import SessionManager

logger = logging.getLogger(__name__)


class AuthFlowController:
    """Credential form state machine for one unauthenticated shell."""

    def __init__(self, session_manager: SessionManager):
        self.session_manager = session_manager
        self.state: Observable[AuthFlowState] = Observable(AuthFlowState(), name="auth_flow")
        self._disposed = False

    @property
    def mode(self) -> AuthMode:
        return self.state.value.mode

    @property
    def pending_email(self) -> str:
        return self.state.value.pending_email

    @property
    def disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        """Called once the session has a user; the controller is then inert."""
        self._disposed = True
        logger.debug("[AuthFlow] Disposed")

    def _guard(self, *allowed: AuthMode) -> Optional[OperationResult]:
        if self._disposed:
            return OperationResult.fail(AuthError("Auth flow is closed", "You are already signed in"))
        if allowed and self.mode not in allowed:
            return OperationResult.fail(ValidationError(
                f"Not allowed in mode {self.mode.value}",
                "This action is not available right now",
            ))
        return None

    # Mode switches

    def switch_to_sign_up(self) -> OperationResult:
        rejected = self._guard(AuthMode.SIGN_IN)
        if rejected:
            return rejected
        self.state.set(AuthFlowState(mode=AuthMode.SIGN_UP))
        return OperationResult.ok(self.mode)

    def switch_to_sign_in(self) -> OperationResult:
        rejected = self._guard(AuthMode.SIGN_UP)
        if rejected:
            return rejected
        self.state.set(AuthFlowState(mode=AuthMode.SIGN_IN))
        return OperationResult.ok(self.mode)

    def back(self) -> OperationResult:
        """Leave OTP entry and forget the pending email."""
        rejected = self._guard(AuthMode.OTP_VERIFY)
        if rejected:
            return rejected
        self.state.set(AuthFlowState(mode=AuthMode.SIGN_IN))
        return OperationResult.ok(self.mode)

    # Credential paths

    async def sign_in(self, email: str, password: str) -> OperationResult:
        rejected = self._guard(AuthMode.SIGN_IN)
        if rejected:
            return rejected
        return await self.session_manager.sign_in_with_password(email, password)

    async def sign_up(self, email: str, password: str) -> OperationResult:
        rejected = self._guard(AuthMode.SIGN_UP)
        if rejected:
            return rejected
        return await self.session_manager.sign_up(email, password)

    async def sign_in_with_oauth(self, provider: Optional[str] = None) -> OperationResult:
        rejected = self._guard(AuthMode.SIGN_IN, AuthMode.SIGN_UP)
        if rejected:
            return rejected
        return await self.session_manager.sign_in_with_oauth(provider)

    async def request_otp(self, email: str) -> OperationResult:
        """Send a code to ``email`` and move to OTP entry once it is issued."""
        rejected = self._guard(AuthMode.SIGN_IN, AuthMode.SIGN_UP)
        if rejected:
            return rejected

        result = await self.session_manager.request_otp(email)
        if result.success and not self._disposed:
            self.state.set(AuthFlowState(mode=AuthMode.OTP_VERIFY, pending_email=email.strip()))
            logger.info("[AuthFlow] Awaiting OTP entry")
        return result

    async def verify_otp(self, code: str) -> OperationResult:
        """Verify ``code`` for the pending email. Failures keep OTP entry open."""
        rejected = self._guard(AuthMode.OTP_VERIFY)
        if rejected:
            return rejected
        return await self.session_manager.verify_otp(self.pending_email, code)

    async def resend_otp(self) -> OperationResult:
        """Issue a new code for the pending email and ask the form to clear its input."""
        rejected = self._guard(AuthMode.OTP_VERIFY)
        if rejected:
            return rejected

        email = self.pending_email
        result = await self.session_manager.request_otp(email)
        if result.success and self.mode == AuthMode.OTP_VERIFY and self.pending_email == email:
            self.state.update(otp_input_epoch=self.state.value.otp_input_epoch + 1)
        return result
