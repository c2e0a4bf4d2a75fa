"""Shared plumbing for the two-factor flows."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, TypeVar

from ..classification import ProviderOperation, classify_provider_error
from ..config import TwoFactorConfig
from ..exceptions import ProviderError, TwoFactorError
from ..models import BulkUnenrollReport, UnenrollResult
from ..observability import TwoFactorMetrics, TwoFactorTracing

if TYPE_CHECKING:
    from collections.abc import Awaitable, Generator, Iterable

    from ..audit.events import AuthAuditEvent
    from ..models import Factor, Principal
    from ..ports import IAuthAuditStore, IIdentityProviderPort, ITwoFactorStatusListener
    from ..session import Session

T = TypeVar("T")

logger = logging.getLogger(__name__)


class BaseFlow:
    """Base class holding the provider port and the ambient collaborators.

    Args:
        provider: Identity provider port bound to the client.
        config: Two-factor configuration.
        audit_store: Optional audit event store.
        status_listener: Optional listener told about enable/disable.
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
        self.audit_store = audit_store
        self.status_listener = status_listener

    async def _call(self, operation: ProviderOperation, call: Awaitable[T]) -> T:
        """Await a provider call, classifying provider rejections."""
        try:
            return await call
        except ProviderError as e:
            classified = classify_provider_error(e, operation)
            if classified is e:
                raise
            raise classified from e

    @contextmanager
    def _observe(self, operation: str, session: Session) -> Generator[Any, None, None]:
        provider = self.config.provider_name
        with (
            TwoFactorMetrics.operation(operation, provider=provider),
            TwoFactorTracing.span(operation, provider=provider) as span,
        ):
            TwoFactorTracing.set_principal(span, session.principal)
            yield span

    async def _audit(self, event: AuthAuditEvent) -> None:
        TwoFactorMetrics.record_event(event)
        if self.audit_store is not None:
            await self.audit_store.record(event)

    async def _notify(self, principal: Principal, *, enabled: bool) -> None:
        if self.status_listener is not None:
            await self.status_listener.two_factor_status_changed(
                principal, enabled=enabled
            )

    async def list_factors(self) -> list[Factor]:
        return await self._call(
            ProviderOperation.LIST_FACTORS, self.provider.list_factors()
        )

    async def _unenroll_each(self, factors: Iterable[Factor]) -> BulkUnenrollReport:
        """Try to unenroll every factor, continuing past failures."""
        results: list[UnenrollResult] = []
        for factor in factors:
            try:
                await self._call(
                    ProviderOperation.UNENROLL_FACTOR,
                    self.provider.unenroll_factor(factor.id),
                )
            except TwoFactorError as e:
                logger.warning("Could not remove factor %s: %s", factor.id, e)
                results.append(
                    UnenrollResult(
                        factor_id=factor.id, ok=False, error=str(e), error_kind=e.kind
                    )
                )
            else:
                results.append(UnenrollResult(factor_id=factor.id, ok=True))
        return BulkUnenrollReport(results=tuple(results))


__all__: list[str] = ["BaseFlow"]
