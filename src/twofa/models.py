"""Value objects shared by the port, the registry and the flows.

Principal, Factor and Challenge are immutable pydantic value objects.
Enrollment material and bulk-unenroll reports are frozen dataclasses.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .exceptions import ChallengeError

if TYPE_CHECKING:
    from collections.abc import Iterable

_NON_DIGITS = re.compile(r"\D")


class ValueObject(BaseModel):
    """Immutable pydantic model compared by field values."""

    model_config = ConfigDict(frozen=True)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, self.__class__):
            return False
        return self.model_dump() == other.model_dump()

    def __hash__(self) -> int:
        return hash(tuple(sorted(self.model_dump().items())))


class FactorStatus(str, Enum):
    """Verification status of a registered factor."""

    UNVERIFIED = "unverified"
    VERIFIED = "verified"


class FactorType(str, Enum):
    """Supported second-factor types."""

    TOTP = "totp"


class Principal(ValueObject):
    """The authenticated identity returned by the provider.

    Attributes:
        user_id: Stable identifier assigned by the provider.
        email: Email address used to sign in.
    """

    user_id: str
    email: str


class Factor(ValueObject):
    """A registered second-factor credential as listed by the provider.

    Secret material is never part of a listed factor.
    """

    id: str
    status: FactorStatus
    factor_type: FactorType = FactorType.TOTP
    friendly_name: str | None = None

    @property
    def is_verified(self) -> bool:
        return self.status is FactorStatus.VERIFIED


class Challenge(ValueObject):
    """A factor id paired with a user-entered code.

    Consumed by exactly one challenge-and-verify call and never stored.
    """

    factor_id: str
    code: str

    @field_validator("code")
    @classmethod
    def _digits_only(cls, value: str) -> str:
        return _NON_DIGITS.sub("", value)

    @classmethod
    def create(cls, factor_id: str, raw_code: str, *, length: int = 6) -> Challenge:
        """Build a challenge from raw user input.

        Non-digit characters are stripped before the length check.

        Raises:
            ChallengeError: If the code does not have exactly ``length`` digits.
        """
        try:
            challenge = cls(factor_id=factor_id, code=raw_code)
        except ValidationError as e:
            raise ChallengeError() from e
        if len(challenge.code) != length:
            raise ChallengeError(
                f"Enter the {length}-digit code from your authenticator app."
            )
        return challenge


@dataclass(frozen=True)
class TotpEnrollment:
    """Enrollment material returned by the provider for a new TOTP factor.

    Attributes:
        factor_id: Identifier of the new, still unverified factor.
        secret: Base32 shared secret for manual entry.
        uri: otpauth:// provisioning URI encoding the secret.
        qr_code: Scannable image (usually an SVG data URI) when provided.
    """

    factor_id: str
    secret: str
    uri: str
    qr_code: str | None = None


@dataclass(frozen=True)
class UnenrollResult:
    """Outcome of one unenroll attempt inside a bulk operation."""

    factor_id: str
    ok: bool
    error: str | None = None
    error_kind: str | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "factorId": self.factor_id,
            "ok": self.ok,
            "error": self.error,
        }


@dataclass(frozen=True)
class BulkUnenrollReport:
    """Aggregated per-factor results of a best-effort bulk unenroll."""

    results: tuple[UnenrollResult, ...] = field(default_factory=tuple)

    @property
    def attempted(self) -> list[str]:
        return [r.factor_id for r in self.results]

    @property
    def succeeded(self) -> list[str]:
        return [r.factor_id for r in self.results if r.ok]

    @property
    def failed(self) -> list[UnenrollResult]:
        return [r for r in self.results if not r.ok]

    @property
    def ok(self) -> bool:
        return not self.failed

    def all_attempted_for(self, factors: Iterable[Factor]) -> bool:
        """Check that an attempt was made for every given factor."""
        attempted = set(self.attempted)
        return all(f.id in attempted for f in factors)


__all__: list[str] = [
    "ValueObject",
    "FactorStatus",
    "FactorType",
    "Principal",
    "Factor",
    "Challenge",
    "TotpEnrollment",
    "UnenrollResult",
    "BulkUnenrollReport",
]
