"""Two-factor authentication domain exceptions.

Every error raised by the flows inherits from TwoFactorError and carries a
``kind`` and a user-facing ``user_message``, so the surrounding UI can show a
distinct message per failure without inspecting provider text.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from .models import BulkUnenrollReport

# ═══════════════════════════════════════════════════════════════
# BASE ERROR
# ═══════════════════════════════════════════════════════════════


class TwoFactorError(Exception):
    """Root exception for the twofa package.

    Attributes:
        kind: Stable machine-readable error kind.
        default_message: Message used when none is given.
    """

    kind: ClassVar[str] = "error"
    default_message: ClassVar[str] = "Something went wrong. Please try again."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def user_message(self) -> str:
        """Message suitable for showing to the end user."""
        return str(self)


# ═══════════════════════════════════════════════════════════════
# PROVIDER-REPORTED ERRORS
# ═══════════════════════════════════════════════════════════════


class ProviderError(TwoFactorError):
    """Raised by a provider adapter when the identity provider rejects a call.

    The flows classify it into a more specific error when the message allows
    it; otherwise it is surfaced with the provider's own message.

    Attributes:
        code: Provider error code, if any.
        status: HTTP-like status reported by the provider, if any.
    """

    kind = "provider_error"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        status: int | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.status = status


class AuthenticationError(TwoFactorError):
    """Raised when password verification fails.

    The base class carries the provider message; use
    InvalidCredentialsError for plain bad credentials.
    """

    kind = "authentication_failed"
    default_message = "Could not sign in. Please try again."


class InvalidCredentialsError(AuthenticationError):
    """Raised when the email/password pair is rejected."""

    kind = "invalid_credentials"
    default_message = "Incorrect email or password."


class ChallengeError(TwoFactorError):
    """Raised when a TOTP code is wrong, expired or malformed."""

    kind = "invalid_code"
    default_message = "Incorrect code. Check your authenticator app and try again."


class ProviderConflictError(TwoFactorError):
    """Raised when the provider refuses to create a duplicate factor.

    Recoverable by resetting two-factor authentication.

    Attributes:
        remediation: Name of the flow that resolves the conflict.
    """

    kind = "factor_conflict"
    default_message = (
        "A two-factor authenticator already exists for this account. "
        "Reset two-factor authentication to set it up again."
    )

    def __init__(
        self, message: str | None = None, *, remediation: str = "reset"
    ) -> None:
        super().__init__(message)
        self.remediation = remediation


class ElevationRequiredError(TwoFactorError):
    """Raised when the session is too weak to remove a verified factor.

    Not locally recoverable: the user must sign out and sign in again with
    their second factor.

    Attributes:
        report: Per-factor outcome of the attempted removal.
    """

    kind = "elevation_required"
    default_message = (
        "To disable two-factor authentication, sign out and sign in again "
        "using your two-factor code, then retry."
    )

    def __init__(
        self,
        message: str | None = None,
        *,
        report: BulkUnenrollReport | None = None,
    ) -> None:
        super().__init__(message)
        self.report = report


class TransportError(TwoFactorError):
    """Raised when the identity provider cannot be reached."""

    kind = "provider_unavailable"
    default_message = "The sign-in service is unavailable. Please try again."


class UnauthorizedError(TwoFactorError):
    """Raised when an operation needs an authenticated session."""

    kind = "unauthorized"
    default_message = "Unauthorized"


# ═══════════════════════════════════════════════════════════════
# FLOW CONTROL ERRORS
# ═══════════════════════════════════════════════════════════════


class SessionBusyError(TwoFactorError):
    """Raised when a mutating operation is already in flight."""

    kind = "busy"
    default_message = "Another request is still in progress. Please wait."


class FlowStateError(TwoFactorError):
    """Raised when an operation is not valid in the current session state."""

    kind = "invalid_state"
    default_message = "This action is not available right now."


class ConfirmationRequiredError(TwoFactorError):
    """Raised when a destructive operation was not explicitly confirmed."""

    kind = "confirmation_required"
    default_message = "Please confirm this action before continuing."


__all__: list[str] = [
    # Base
    "TwoFactorError",
    # Provider-reported
    "ProviderError",
    "AuthenticationError",
    "InvalidCredentialsError",
    "ChallengeError",
    "ProviderConflictError",
    "ElevationRequiredError",
    "TransportError",
    "UnauthorizedError",
    # Flow control
    "SessionBusyError",
    "FlowStateError",
    "ConfirmationRequiredError",
]
