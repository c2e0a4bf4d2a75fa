"""User-facing messages for flow errors."""

from __future__ import annotations

from dataclasses import dataclass

from .exceptions import ProviderConflictError, TwoFactorError

UNEXPECTED_ERROR_MESSAGE = "Unexpected error. Please try again."


@dataclass(frozen=True)
class ErrorDescription:
    """What the front end needs to render a failure.

    Attributes:
        kind: Stable error kind.
        message: Message for the user.
        remediation: Name of a flow that can fix the problem, if any.
    """

    kind: str
    message: str
    remediation: str | None = None

    def to_dict(self) -> dict[str, str | None]:
        return {
            "kind": self.kind,
            "message": self.message,
            "remediation": self.remediation,
        }


def user_message(error: BaseException) -> str:
    """Return the message to show the user for ``error``.

    Unknown exceptions never leak their text.
    """
    if isinstance(error, TwoFactorError):
        return error.user_message
    return UNEXPECTED_ERROR_MESSAGE


def describe_error(error: BaseException) -> ErrorDescription:
    """Describe ``error`` for the front end."""
    if isinstance(error, ProviderConflictError):
        return ErrorDescription(
            kind=error.kind,
            message=error.user_message,
            remediation=error.remediation,
        )
    if isinstance(error, TwoFactorError):
        return ErrorDescription(kind=error.kind, message=error.user_message)
    return ErrorDescription(kind="unexpected", message=UNEXPECTED_ERROR_MESSAGE)


__all__: list[str] = [
    "UNEXPECTED_ERROR_MESSAGE",
    "ErrorDescription",
    "user_message",
    "describe_error",
]
