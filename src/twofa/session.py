"""Session: the authentication progress of one client.

The Session is a plain mutable state-machine value. It is owned by the caller
(a web session, a CLI, a test) and passed by reference into every flow
operation; flows never read the signed-in user from ambient context.

States::

    IDLE -> PASSWORD_VERIFIED -> AUTHENTICATED
                              -> AWAITING_SECOND_FACTOR -> AUTHENTICATED
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from .exceptions import SessionBusyError, UnauthorizedError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from .models import Principal, TotpEnrollment


class LoginState(str, Enum):
    """States of the login challenge state machine."""

    IDLE = "idle"
    PASSWORD_VERIFIED = "password_verified"
    AWAITING_SECOND_FACTOR = "awaiting_second_factor"
    AUTHENTICATED = "authenticated"


class AssuranceLevel(str, Enum):
    """Strength of the provider session.

    AAL1 sessions passed password verification only. AAL2 sessions also
    passed a second-factor challenge and are "elevated".
    """

    AAL1 = "aal1"
    AAL2 = "aal2"


@dataclass
class PendingEnrollment:
    """Transient enrollment material shown while the user scans the code.

    Never persisted; cleared on every exit path of enrollment.
    """

    factor_id: str
    secret: str
    uri: str
    qr_code: str | None = None

    @classmethod
    def from_enrollment(cls, enrollment: TotpEnrollment) -> PendingEnrollment:
        return cls(
            factor_id=enrollment.factor_id,
            secret=enrollment.secret,
            uri=enrollment.uri,
            qr_code=enrollment.qr_code,
        )


class Session:
    """Authentication progress for one login attempt on one client.

    Attributes:
        state: Current login state.
        principal: Principal once the password was verified.
        pending_factor_id: Factor challenged during login.
        code: Code buffer of the last submitted code.
        error: User-facing message of the last failure.
        busy: True while a mutating operation is in flight.
        assurance: Strength of the provider session.
        provider_session_active: True while the provider holds a session
            for this client, even if the flow went back to IDLE.
        enrollment: Pending enrollment material, if any.
    """

    def __init__(self) -> None:
        self.state = LoginState.IDLE
        self.principal: Principal | None = None
        self.pending_factor_id: str | None = None
        self.code = ""
        self.error: str | None = None
        self.busy = False
        self.assurance: AssuranceLevel | None = None
        self.provider_session_active = False
        self.enrollment: PendingEnrollment | None = None

    def __repr__(self) -> str:
        user = self.principal.user_id if self.principal else None
        return f"Session(state={self.state.value}, user={user!r}, busy={self.busy})"

    @property
    def is_authenticated(self) -> bool:
        return self.state is LoginState.AUTHENTICATED and self.principal is not None

    @property
    def is_elevated(self) -> bool:
        return self.is_authenticated and self.assurance is AssuranceLevel.AAL2

    def require_authenticated(self) -> Principal:
        """Return the principal of an authenticated session.

        Raises:
            UnauthorizedError: If the session is not authenticated.
        """
        if not self.is_authenticated or self.principal is None:
            raise UnauthorizedError()
        return self.principal

    @asynccontextmanager
    async def operation(self, name: str) -> AsyncIterator[Session]:
        """Gate a mutating operation on the busy flag.

        Raises:
            SessionBusyError: If another operation is still in flight.
        """
        if self.busy:
            raise SessionBusyError(
                f"Cannot start {name!r} while another request is in progress."
            )
        self.busy = True
        try:
            yield self
        finally:
            self.busy = False

    def clear_challenge(self) -> None:
        """Forget the challenged factor, the code buffer and the last error."""
        self.pending_factor_id = None
        self.code = ""
        self.error = None

    def clear_enrollment(self) -> None:
        """Drop any transient enrollment secret material."""
        self.enrollment = None

    def reset(self) -> None:
        """Return to a fresh IDLE session (provider sign-out already done)."""
        self.state = LoginState.IDLE
        self.principal = None
        self.assurance = None
        self.provider_session_active = False
        self.clear_challenge()
        self.clear_enrollment()


__all__: list[str] = [
    "LoginState",
    "AssuranceLevel",
    "PendingEnrollment",
    "Session",
]
