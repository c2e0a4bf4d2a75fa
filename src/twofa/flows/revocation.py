"""Disable and reset: bulk removal of a principal's factors."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..audit.events import AuthEventType, mfa_event
from ..exceptions import (
    ConfirmationRequiredError,
    ElevationRequiredError,
    TransportError,
    TwoFactorError,
)
from ..registry import classify
from .base import BaseFlow

if TYPE_CHECKING:
    from ..models import BulkUnenrollReport
    from ..session import Session

logger = logging.getLogger(__name__)


class RevocationFlow(BaseFlow):
    """Remove factors, either strictly (disable) or best-effort (reset).

    Both operations need explicit confirmation from the user.
    """

    async def disable(
        self, session: Session, *, confirmed: bool
    ) -> BulkUnenrollReport:
        """Remove every verified factor.

        Partial removal is never reported as success. Providers usually
        demand an elevated session to remove a verified factor, so a failed
        removal is surfaced as ElevationRequiredError.

        Raises:
            ConfirmationRequiredError: ``confirmed`` is false.
            ElevationRequiredError: At least one verified factor could not
                be removed.
            TransportError: Every failed removal was a transport failure.
            UnauthorizedError: The session is not authenticated.
        """
        principal = session.require_authenticated()
        if not confirmed:
            raise ConfirmationRequiredError(
                "Confirm that you want to disable two-factor authentication."
            )

        async with session.operation("disable"):
            with self._observe("disable", session):
                session.error = None
                try:
                    summary = classify(await self.list_factors())
                except TwoFactorError as e:
                    session.error = e.user_message
                    raise

                report = await self._unenroll_each(summary.verified)
                if not report.ok:
                    error = self._disable_failure(report)
                    session.error = error.user_message
                    await self._audit(
                        mfa_event(
                            AuthEventType.MFA_DISABLED,
                            principal.user_id,
                            self.config.provider_name,
                            success=False,
                            error_code=error.kind,
                            error_message=str(error),
                            metadata={"failed": [r.factor_id for r in report.failed]},
                        )
                    )
                    raise error

                session.clear_enrollment()
                await self._audit(
                    mfa_event(
                        AuthEventType.MFA_DISABLED,
                        principal.user_id,
                        self.config.provider_name,
                        metadata={"removed": report.succeeded},
                    )
                )
                logger.info(
                    "Two-factor authentication disabled for %s", principal.user_id
                )
                await self._notify(principal, enabled=False)
                return report

    @staticmethod
    def _disable_failure(report: BulkUnenrollReport) -> TwoFactorError:
        if all(r.error_kind == TransportError.kind for r in report.failed):
            return TransportError()
        return ElevationRequiredError(report=report)

    async def reset(
        self, session: Session, *, confirmed: bool
    ) -> BulkUnenrollReport:
        """Try to remove every factor, verified or not.

        Recovery path for inconsistent enrollment state. Individual failures
        do not abort the loop; they are logged and kept in the report.

        Returns:
            Per-factor results; an entry exists for every listed factor.

        Raises:
            ConfirmationRequiredError: ``confirmed`` is false.
            UnauthorizedError: The session is not authenticated.
        """
        principal = session.require_authenticated()
        if not confirmed:
            raise ConfirmationRequiredError(
                "Confirm that you want to remove all two-factor authenticators."
            )

        async with session.operation("reset"):
            with self._observe("reset", session):
                session.error = None
                try:
                    factors = await self.list_factors()
                except TwoFactorError as e:
                    session.error = e.user_message
                    raise

                report = await self._unenroll_each(factors)
                if not report.ok:
                    logger.warning(
                        "Reset left %d of %d factor(s) in place for %s",
                        len(report.failed),
                        len(factors),
                        principal.user_id,
                    )

                session.clear_enrollment()
                session.code = ""
                await self._audit(
                    mfa_event(
                        AuthEventType.MFA_RESET,
                        principal.user_id,
                        self.config.provider_name,
                        metadata={
                            "attempted": report.attempted,
                            "failed": [r.factor_id for r in report.failed],
                        },
                    )
                )
                failed_ids = {r.factor_id for r in report.failed}
                still_enabled = any(
                    f.is_verified and f.id in failed_ids for f in factors
                )
                await self._notify(principal, enabled=still_enabled)
                return report


__all__: list[str] = ["RevocationFlow"]
