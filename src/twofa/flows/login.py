"""Login challenge flow: password first, then a TOTP code when required."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..audit.events import (
    AuthEventType,
    challenge_required_event,
    login_failed_event,
    login_success_event,
    mfa_event,
    session_destroyed_event,
)
from ..classification import ProviderOperation
from ..exceptions import (
    ChallengeError,
    FlowStateError,
    SessionBusyError,
    TwoFactorError,
)
from ..models import Challenge
from ..registry import classify
from ..session import AssuranceLevel, LoginState
from .base import BaseFlow

if TYPE_CHECKING:
    from ..models import Principal
    from ..session import Session

logger = logging.getLogger(__name__)


class LoginChallengeFlow(BaseFlow):
    """Drive a Session from IDLE to AUTHENTICATED.

    Accounts without a verified factor are authenticated by password alone.
    Accounts with one are held in AWAITING_SECOND_FACTOR until a code for
    their first verified factor is accepted. Retries are always user-initiated;
    the provider is the only rate limiter.

    Example:
        ```python
        flow = LoginChallengeFlow(provider)
        session = Session()

        state = await flow.submit_password(session, "ana@example.com", "pw")
        if state is LoginState.AWAITING_SECOND_FACTOR:
            await flow.submit_code(session, "123456")
        ```
    """

    async def submit_password(
        self, session: Session, email: str, password: str
    ) -> LoginState:
        """Verify email and password and decide whether a code is needed.

        The provider session bound to this client is always terminated
        first, even one this Session does not know about, so two
        credentials are never interleaved.

        Returns:
            AUTHENTICATED or AWAITING_SECOND_FACTOR.

        Raises:
            AuthenticationError: Password verification failed.
            SessionBusyError: Another operation is in flight.
            TransportError: The provider is unreachable.
        """
        async with session.operation("login.password"):
            with self._observe("login.password", session):
                session.error = None
                previous_id = session.principal.user_id if session.principal else None
                was_active = session.provider_session_active
                try:
                    await self._end_provider_session(session)
                except TwoFactorError as e:
                    session.error = e.user_message
                    raise
                if was_active:
                    await self._audit(
                        session_destroyed_event(
                            previous_id, self.config.provider_name, reason="new_login"
                        )
                    )

                try:
                    principal = await self._call(
                        ProviderOperation.VERIFY_PASSWORD,
                        self.provider.verify_password(email, password),
                    )
                except TwoFactorError as e:
                    session.state = LoginState.IDLE
                    session.error = e.user_message
                    await self._audit(
                        login_failed_event(
                            self.config.provider_name,
                            email=email,
                            error_code=e.kind,
                            error_message=str(e),
                        )
                    )
                    raise

                session.principal = principal
                session.assurance = AssuranceLevel.AAL1
                session.provider_session_active = True
                session.state = LoginState.PASSWORD_VERIFIED
                return await self._branch_on_factors(session, principal)

    async def _branch_on_factors(
        self, session: Session, principal: Principal
    ) -> LoginState:
        try:
            summary = classify(await self.list_factors())
        except TwoFactorError as e:
            # The provider session stays active; the next submit terminates it.
            session.state = LoginState.IDLE
            session.principal = None
            session.error = e.user_message
            raise

        if not summary.is_enabled:
            session.state = LoginState.AUTHENTICATED
            await self._audit(
                login_success_event(principal.user_id, self.config.provider_name)
            )
            logger.info(
                "Principal %s signed in without a second factor", principal.user_id
            )
            return session.state

        factor_id = summary.verified[0].id
        session.pending_factor_id = factor_id
        session.state = LoginState.AWAITING_SECOND_FACTOR
        await self._audit(
            challenge_required_event(
                principal.user_id, self.config.provider_name, factor_id=factor_id
            )
        )
        return session.state

    async def submit_code(self, session: Session, code: str) -> LoginState:
        """Verify a TOTP code against the challenged factor.

        A rejected code leaves the session in AWAITING_SECOND_FACTOR so the
        user can try again.

        Returns:
            AUTHENTICATED.

        Raises:
            ChallengeError: The code is wrong, expired or malformed.
            FlowStateError: No second factor is awaited.
            SessionBusyError: Another operation is in flight.
        """
        async with session.operation("login.code"):
            if (
                session.state is not LoginState.AWAITING_SECOND_FACTOR
                or session.pending_factor_id is None
                or session.principal is None
            ):
                raise FlowStateError("No two-factor code is expected right now.")

            principal = session.principal
            with self._observe("login.code", session):
                session.error = None
                try:
                    challenge = Challenge.create(
                        session.pending_factor_id,
                        code,
                        length=self.config.code_length,
                    )
                    session.code = challenge.code
                    await self._call(
                        ProviderOperation.CHALLENGE_AND_VERIFY,
                        self.provider.challenge_and_verify(
                            challenge.factor_id, challenge.code
                        ),
                    )
                except TwoFactorError as e:
                    session.error = e.user_message
                    if isinstance(e, ChallengeError):
                        await self._audit(
                            mfa_event(
                                AuthEventType.MFA_FAILED,
                                principal.user_id,
                                self.config.provider_name,
                                factor_id=session.pending_factor_id,
                                success=False,
                                error_code=e.kind,
                            )
                        )
                    raise

                await self._audit(
                    mfa_event(
                        AuthEventType.MFA_VERIFIED,
                        principal.user_id,
                        self.config.provider_name,
                        factor_id=session.pending_factor_id,
                    )
                )
                session.clear_challenge()
                session.assurance = AssuranceLevel.AAL2
                session.state = LoginState.AUTHENTICATED
                await self._audit(
                    login_success_event(
                        principal.user_id,
                        self.config.provider_name,
                        second_factor=True,
                    )
                )
                return session.state

    def back(self, session: Session) -> LoginState:
        """Abandon the code prompt and return to the password form.

        Clears the challenged factor, the code buffer and the last error.

        Raises:
            FlowStateError: The session is already authenticated.
            SessionBusyError: Another operation is in flight.
        """
        if session.busy:
            raise SessionBusyError()
        if session.state is LoginState.AUTHENTICATED:
            raise FlowStateError("The session is already authenticated.")
        session.clear_challenge()
        session.principal = None
        session.state = LoginState.IDLE
        return session.state

    async def sign_out(self, session: Session) -> None:
        """Terminate the provider session and reset the Session value."""
        async with session.operation("logout"):
            with self._observe("logout", session):
                await self._terminate(session, reason="logout")

    async def _end_provider_session(self, session: Session) -> None:
        await self._call(
            ProviderOperation.TERMINATE_SESSION, self.provider.terminate_session()
        )
        session.reset()

    async def _terminate(self, session: Session, *, reason: str) -> None:
        principal_id = session.principal.user_id if session.principal else None
        await self._end_provider_session(session)
        await self._audit(
            session_destroyed_event(
                principal_id, self.config.provider_name, reason=reason
            )
        )


__all__: list[str] = ["LoginChallengeFlow"]
