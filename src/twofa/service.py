"""TwoFactorService: one entry point wiring the flows to a provider.

Also exposes the two calls the front end makes directly: the status query
and the reset command.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .config import TwoFactorConfig
from .flows import EnrollmentFlow, LoginChallengeFlow, RevocationFlow
from .registry import FactorSummary, classify

if TYPE_CHECKING:
    from .models import BulkUnenrollReport
    from .ports import IAuthAuditStore, IIdentityProviderPort, ITwoFactorStatusListener
    from .session import Session


class TwoFactorService:
    """Facade over the login, enrollment and revocation flows.

    Example:
        ```python
        service = TwoFactorService(
            provider,
            config=TwoFactorConfig(provider_name="supabase"),
            audit_store=InMemoryAuthAuditStore(),
        )

        await service.login.submit_password(session, email, password)
        status = await service.status(session)
        ```
    """

    def __init__(
        self,
        provider: IIdentityProviderPort,
        *,
        config: TwoFactorConfig | None = None,
        audit_store: IAuthAuditStore | None = None,
        status_listener: ITwoFactorStatusListener | None = None,
    ) -> None:
        self.provider = provider
        self.config = config or TwoFactorConfig()
        kwargs = {
            "config": self.config,
            "audit_store": audit_store,
            "status_listener": status_listener,
        }
        self.login = LoginChallengeFlow(provider, **kwargs)
        self.enrollment = EnrollmentFlow(provider, **kwargs)
        self.revocation = RevocationFlow(provider, **kwargs)

    async def status(self, session: Session) -> FactorSummary:
        """Report the caller's two-factor status.

        Raises:
            UnauthorizedError: The session is not authenticated.
        """
        session.require_authenticated()
        return classify(await self.login.list_factors())

    async def reset(self, session: Session) -> BulkUnenrollReport:
        """Reset command: best-effort removal of all the caller's factors.

        Confirmation is implied by the caller issuing the command.

        Raises:
            UnauthorizedError: The session is not authenticated.
        """
        return await self.revocation.reset(session, confirmed=True)


__all__: list[str] = ["TwoFactorService"]
