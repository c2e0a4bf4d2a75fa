"""Ports (protocols) consumed by the two-factor flows.

The identity provider is an external collaborator: the flows only talk to it
through IIdentityProviderPort, so a fake provider can be substituted in tests.
All ports use @runtime_checkable for isinstance checks.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .audit.events import AuthAuditEvent, AuthEventType
    from .models import Factor, Principal, TotpEnrollment


# ═══════════════════════════════════════════════════════════════
# IDENTITY PROVIDER PORT
# ═══════════════════════════════════════════════════════════════


@runtime_checkable
class IIdentityProviderPort(Protocol):
    """Protocol for the identity provider that owns passwords and factors.

    The provider is bound to one client: ``terminate_session`` and the factor
    operations act on whichever principal is currently signed in on it.

    Implementations raise:
        ProviderError: The provider rejected the call (with its message).
        TransportError: The provider could not be reached.

    Implementations:
        - InMemoryIdentityProvider (development and tests)
    """

    async def verify_password(self, email: str, password: str) -> Principal:
        """Verify a password and start a password-only provider session.

        Args:
            email: Account email.
            password: Plaintext password.

        Returns:
            The authenticated Principal.
        """
        ...

    async def terminate_session(self) -> None:
        """Sign out the currently active provider session, if any."""
        ...

    async def list_factors(self) -> list[Factor]:
        """List every factor of the signed-in principal.

        Returns:
            Factors with their verification status.
        """
        ...

    async def enroll_factor(
        self,
        factor_type: str = "totp",
        friendly_name: str | None = None,
    ) -> TotpEnrollment:
        """Create a new unverified factor.

        Args:
            factor_type: Factor type, always "totp".
            friendly_name: Label for the factor.

        Returns:
            The new factor id and its secret material.
        """
        ...

    async def challenge_and_verify(self, factor_id: str, code: str) -> None:
        """Create a challenge for a factor and verify a code against it.

        A successful verification marks the factor verified and elevates
        the provider session.

        Args:
            factor_id: Factor to challenge.
            code: Code entered by the user.
        """
        ...

    async def unenroll_factor(self, factor_id: str) -> None:
        """Remove a factor.

        Args:
            factor_id: Factor to remove.
        """
        ...


# ═══════════════════════════════════════════════════════════════
# STATUS LISTENER PORT
# ═══════════════════════════════════════════════════════════════


@runtime_checkable
class ITwoFactorStatusListener(Protocol):
    """Protocol for the surrounding system to learn about status changes.

    Called after enrollment is verified and after disable or reset.
    """

    async def two_factor_status_changed(
        self, principal: Principal, *, enabled: bool
    ) -> None:
        """Handle a change of the principal's two-factor status.

        Args:
            principal: The principal whose factors changed.
            enabled: Whether two-factor authentication is now enabled.
        """
        ...


# ═══════════════════════════════════════════════════════════════
# AUDIT PORT
# ═══════════════════════════════════════════════════════════════


@runtime_checkable
class IAuthAuditStore(Protocol):
    """Protocol for storing the login and factor lifecycle trail.

    Only ``record`` is called by the flows; the queries serve support
    tooling, e.g. spotting repeated wrong codes for one user.
    """

    async def record(self, event: AuthAuditEvent) -> None:
        """Append ``event`` to the trail."""
        ...

    async def get_events(
        self,
        principal_id: str,
        *,
        event_types: list[AuthEventType] | None = None,
        limit: int = 100,
    ) -> list[AuthAuditEvent]:
        """Return a user's events, newest first.

        Args:
            principal_id: User whose trail is read.
            event_types: Keep only these kinds when given.
            limit: Upper bound on returned events.
        """
        ...

    async def get_recent_failures(
        self,
        *,
        principal_id: str | None = None,
        minutes: int = 15,
        limit: int = 100,
    ) -> list[AuthAuditEvent]:
        """Return failed steps such as bad passwords or wrong codes.

        Args:
            principal_id: Restrict to one user when given.
            minutes: Look-back window.
            limit: Upper bound on returned events.
        """
        ...


__all__: list[str] = [
    "IIdentityProviderPort",
    "ITwoFactorStatusListener",
    "IAuthAuditStore",
]
