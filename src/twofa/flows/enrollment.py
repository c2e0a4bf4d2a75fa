"""Enrollment flow: create a TOTP factor, show its secret, verify a code.

Secret material only ever lives on ``Session.enrollment`` and is dropped on
every exit path: verification, cancel, or a failed begin.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..audit.events import AuthEventType, mfa_event
from ..classification import ProviderOperation
from ..exceptions import ChallengeError, FlowStateError, TwoFactorError
from ..models import Challenge
from ..session import AssuranceLevel, PendingEnrollment
from .base import BaseFlow

if TYPE_CHECKING:
    from ..session import Session

logger = logging.getLogger(__name__)


class EnrollmentFlow(BaseFlow):
    """Enable two-factor authentication for an authenticated session.

    Example:
        ```python
        flow = EnrollmentFlow(provider, status_listener=listener)

        pending = await flow.begin(session)
        show_qr(pending.qr_code or pending.uri, pending.secret)

        try:
            await flow.verify(session, code_from_user)
        except ChallengeError:
            ...  # still pending; ask again
        ```
    """

    async def cleanup(self, session: Session) -> list[str]:
        """Remove every factor that is not verified.

        Providers refuse a new TOTP factor while an unverified one exists,
        so this makes repeated enable attempts idempotent.

        Returns:
            Ids of the removed factors.

        Raises:
            UnauthorizedError: The session is not authenticated.
        """
        session.require_authenticated()
        async with session.operation("enrollment.cleanup"):
            with self._observe("enrollment.cleanup", session):
                return await self._purge_unverified(session)

    async def _purge_unverified(self, session: Session) -> list[str]:
        removed: list[str] = []
        for factor in await self.list_factors():
            if factor.is_verified:
                continue
            await self._call(
                ProviderOperation.UNENROLL_FACTOR,
                self.provider.unenroll_factor(factor.id),
            )
            removed.append(factor.id)
        if removed:
            logger.info(
                "Removed %d unverified factor(s) for %s",
                len(removed),
                session.principal.user_id if session.principal else None,
            )
        return removed

    async def begin(self, session: Session) -> PendingEnrollment:
        """Purge stale unverified factors and enroll a new TOTP factor.

        Returns:
            The pending enrollment (factor id, secret, scannable payload),
            also stored on ``session.enrollment`` for display.

        Raises:
            ProviderConflictError: A factor already exists under the fixed
                label; resetting two-factor authentication resolves it.
            UnauthorizedError: The session is not authenticated.
        """
        principal = session.require_authenticated()
        async with session.operation("enrollment.begin"):
            with self._observe("enrollment.begin", session):
                session.clear_enrollment()
                session.code = ""
                session.error = None
                try:
                    await self._purge_unverified(session)
                    enrollment = await self._call(
                        ProviderOperation.ENROLL_FACTOR,
                        self.provider.enroll_factor(
                            self.config.factor_type, self.config.friendly_name
                        ),
                    )
                except TwoFactorError as e:
                    session.clear_enrollment()
                    session.error = e.user_message
                    raise

                session.enrollment = PendingEnrollment.from_enrollment(enrollment)
                await self._audit(
                    mfa_event(
                        AuthEventType.MFA_ENROLLMENT_STARTED,
                        principal.user_id,
                        self.config.provider_name,
                        factor_id=enrollment.factor_id,
                    )
                )
                return session.enrollment

    async def verify(self, session: Session, code: str) -> str:
        """Verify a code for the pending factor, promoting it to verified.

        A rejected code keeps the pending material so the user can retry.

        Returns:
            Id of the now verified factor.

        Raises:
            ChallengeError: The code is wrong, expired or malformed.
            FlowStateError: No enrollment is pending.
            UnauthorizedError: The session is not authenticated.
        """
        principal = session.require_authenticated()
        async with session.operation("enrollment.verify"):
            pending = session.enrollment
            if pending is None:
                raise FlowStateError("There is no authenticator setup to verify.")

            with self._observe("enrollment.verify", session):
                session.error = None
                try:
                    challenge = Challenge.create(
                        pending.factor_id, code, length=self.config.code_length
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
                                factor_id=pending.factor_id,
                                success=False,
                                error_code=e.kind,
                            )
                        )
                    raise

                session.clear_enrollment()
                session.code = ""
                session.assurance = AssuranceLevel.AAL2
                await self._audit(
                    mfa_event(
                        AuthEventType.MFA_ENABLED,
                        principal.user_id,
                        self.config.provider_name,
                        factor_id=pending.factor_id,
                    )
                )
                logger.info(
                    "Two-factor authentication enabled for %s", principal.user_id
                )
                await self._notify(principal, enabled=True)
                return pending.factor_id

    async def cancel(self, session: Session) -> bool:
        """Abandon a pending enrollment.

        The pending factor is unenrolled best-effort so no orphaned
        unverified factor survives; transient state is cleared regardless.

        Returns:
            False if the compensating unenroll failed, True otherwise.
        """
        async with session.operation("enrollment.cancel"):
            pending = session.enrollment
            removed = True
            try:
                if pending is not None:
                    with self._observe("enrollment.cancel", session):
                        removed = await self._remove_pending(session, pending)
            finally:
                session.clear_enrollment()
                session.code = ""
                session.error = None
            return removed

    async def _remove_pending(
        self, session: Session, pending: PendingEnrollment
    ) -> bool:
        try:
            await self._call(
                ProviderOperation.UNENROLL_FACTOR,
                self.provider.unenroll_factor(pending.factor_id),
            )
        except TwoFactorError as e:
            logger.warning(
                "Could not remove pending factor %s: %s", pending.factor_id, e
            )
            return False

        if session.principal is not None:
            await self._audit(
                mfa_event(
                    AuthEventType.MFA_ENROLLMENT_CANCELLED,
                    session.principal.user_id,
                    self.config.provider_name,
                    factor_id=pending.factor_id,
                )
            )
        return True


__all__: list[str] = ["EnrollmentFlow"]
