"""Classify raw provider rejections into the twofa error taxonomy.

Providers report failures as free text plus an optional code. Classification
matches known markers for the operation that failed; anything unrecognised is
surfaced unchanged as a ProviderError with the provider's own message.
"""

from __future__ import annotations

from enum import Enum

from .exceptions import (
    AuthenticationError,
    ChallengeError,
    ElevationRequiredError,
    InvalidCredentialsError,
    ProviderConflictError,
    ProviderError,
    TwoFactorError,
)


class ProviderOperation(str, Enum):
    """Operations of the identity provider port."""

    VERIFY_PASSWORD = "verify_password"  # noqa: S105
    TERMINATE_SESSION = "terminate_session"
    LIST_FACTORS = "list_factors"
    ENROLL_FACTOR = "enroll_factor"
    CHALLENGE_AND_VERIFY = "challenge_and_verify"
    UNENROLL_FACTOR = "unenroll_factor"


INVALID_CREDENTIALS_MARKERS: tuple[str, ...] = (
    "invalid login credentials",
    "invalid_credentials",
)
INVALID_CODE_MARKERS: tuple[str, ...] = (
    "invalid totp code",
    "mfa_verification_failed",
    "mfa_challenge_expired",
)
CONFLICT_MARKERS: tuple[str, ...] = (
    "already exists",
    "mfa_factor_name_conflict",
)
ELEVATION_MARKERS: tuple[str, ...] = (
    "aal2 required",
    "insufficient_aal",
)


def _matches(error: ProviderError, markers: tuple[str, ...]) -> bool:
    text = str(error).lower()
    code = (error.code or "").lower()
    return any(marker in text or marker == code for marker in markers)


def classify_provider_error(
    error: ProviderError,
    operation: ProviderOperation,
) -> TwoFactorError:
    """Map a provider rejection to a specific error.

    Args:
        error: The raw provider error.
        operation: The port operation that failed.

    Returns:
        A classified error, or ``error`` itself when nothing matched.
        Password failures always become an AuthenticationError.
    """
    if operation is ProviderOperation.VERIFY_PASSWORD:
        if _matches(error, INVALID_CREDENTIALS_MARKERS):
            return InvalidCredentialsError()
        return AuthenticationError(str(error))

    if operation is ProviderOperation.CHALLENGE_AND_VERIFY and _matches(
        error, INVALID_CODE_MARKERS
    ):
        return ChallengeError()

    if operation is ProviderOperation.ENROLL_FACTOR and _matches(
        error, CONFLICT_MARKERS
    ):
        return ProviderConflictError()

    if operation is ProviderOperation.UNENROLL_FACTOR and _matches(
        error, ELEVATION_MARKERS
    ):
        return ElevationRequiredError()

    return error


__all__: list[str] = [
    "ProviderOperation",
    "classify_provider_error",
    "INVALID_CREDENTIALS_MARKERS",
    "INVALID_CODE_MARKERS",
    "CONFLICT_MARKERS",
    "ELEVATION_MARKERS",
]
