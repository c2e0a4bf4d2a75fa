"""In-memory identity provider for development and testing.

Mirrors the MFA semantics of a hosted identity provider: one client-bound
session, TOTP factors backed by pyotp, and the provider's own error texts for
wrong codes, duplicate factor names and weak-session unenrolls.
"""

from __future__ import annotations

import logging
import uuid
from collections import defaultdict
from dataclasses import dataclass, field

import pyotp

from .exceptions import ProviderError, TransportError
from .models import Factor, FactorStatus, Principal, TotpEnrollment

logger = logging.getLogger(__name__)


@dataclass
class _StoredFactor:
    id: str
    secret: str
    status: FactorStatus = FactorStatus.UNVERIFIED
    friendly_name: str | None = None

    def to_factor(self) -> Factor:
        return Factor(id=self.id, status=self.status, friendly_name=self.friendly_name)


@dataclass
class _Account:
    principal: Principal
    password: str
    factors: dict[str, _StoredFactor] = field(default_factory=dict)


class InMemoryIdentityProvider:
    """Identity provider port held entirely in memory.

    Useful for development and tests; nothing is persisted.

    Example:
        ```python
        provider = InMemoryIdentityProvider(issuer="MyBlog")
        provider.register("ana@example.com", "s3cret")

        principal = await provider.verify_password("ana@example.com", "s3cret")
        enrollment = await provider.enroll_factor("totp")
        await provider.challenge_and_verify(
            enrollment.factor_id, provider.current_code(enrollment.factor_id)
        )
        ```

    Attributes:
        unavailable: When True every call raises TransportError.
        calls: Names of the port operations invoked, in order.
    """

    def __init__(
        self,
        *,
        issuer: str = "MyApp",
        digits: int = 6,
        interval: int = 30,
        valid_window: int = 1,
    ) -> None:
        self.issuer = issuer
        self.digits = digits
        self.interval = interval
        self.valid_window = valid_window
        self.unavailable = False
        self.calls: list[str] = []
        self._accounts: dict[str, _Account] = {}
        self._current: _Account | None = None
        self._assurance: str | None = None
        self._failures: dict[str, list[Exception]] = defaultdict(list)

    # ── test helpers ─────────────────────────────────────────────

    def register(
        self, email: str, password: str, *, user_id: str | None = None
    ) -> Principal:
        """Create an account and return its principal."""
        principal = Principal(user_id=user_id or str(uuid.uuid4()), email=email)
        self._accounts[email.lower()] = _Account(principal=principal, password=password)
        return principal

    def add_factor(
        self,
        email: str,
        *,
        verified: bool,
        friendly_name: str | None = None,
    ) -> str:
        """Attach a factor to an account out of band and return its id."""
        account = self._accounts[email.lower()]
        stored = _StoredFactor(
            id=str(uuid.uuid4()),
            secret=pyotp.random_base32(),
            status=FactorStatus.VERIFIED if verified else FactorStatus.UNVERIFIED,
            friendly_name=friendly_name,
        )
        account.factors[stored.id] = stored
        return stored.id

    def factors_for(self, email: str) -> list[Factor]:
        return [f.to_factor() for f in self._accounts[email.lower()].factors.values()]

    def current_code(self, factor_id: str) -> str:
        """Return the code an authenticator app would show right now."""
        return self._totp(self._find(factor_id)).now()

    def accepts(self, factor_id: str, code: str) -> bool:
        """Check a code against a factor without touching any session."""
        totp = self._totp(self._find(factor_id))
        return totp.verify(code, valid_window=self.valid_window)

    def fail_next(self, operation: str, error: Exception) -> None:
        """Make the next call of ``operation`` raise ``error``."""
        self._failures[operation].append(error)

    @property
    def assurance(self) -> str | None:
        return self._assurance

    @property
    def signed_in(self) -> Principal | None:
        return self._current.principal if self._current else None

    # ── port ─────────────────────────────────────────────────────

    async def verify_password(self, email: str, password: str) -> Principal:
        self._enter("verify_password")
        account = self._accounts.get(email.lower())
        if account is None or account.password != password:
            raise ProviderError(
                "Invalid login credentials", code="invalid_credentials", status=400
            )
        self._current = account
        self._assurance = "aal1"
        return account.principal

    async def terminate_session(self) -> None:
        self._enter("terminate_session")
        self._current = None
        self._assurance = None

    async def list_factors(self) -> list[Factor]:
        self._enter("list_factors")
        account = self._require_session()
        return [f.to_factor() for f in account.factors.values()]

    async def enroll_factor(
        self,
        factor_type: str = "totp",
        friendly_name: str | None = None,
    ) -> TotpEnrollment:
        self._enter("enroll_factor")
        account = self._require_session()
        if factor_type != "totp":
            raise ProviderError(
                f"Unsupported factor type: {factor_type}",
                code="validation_failed",
                status=422,
            )
        if friendly_name is not None and any(
            f.friendly_name == friendly_name for f in account.factors.values()
        ):
            raise ProviderError(
                f'A factor with the friendly name "{friendly_name}" for this user '
                "already exists",
                code="mfa_factor_name_conflict",
                status=422,
            )

        stored = _StoredFactor(
            id=str(uuid.uuid4()),
            secret=pyotp.random_base32(),
            friendly_name=friendly_name,
        )
        account.factors[stored.id] = stored
        uri = self._totp(stored).provisioning_uri(
            name=account.principal.email, issuer_name=self.issuer
        )
        logger.debug("Enrolled factor %s for %s", stored.id, account.principal.user_id)
        return TotpEnrollment(factor_id=stored.id, secret=stored.secret, uri=uri)

    async def challenge_and_verify(self, factor_id: str, code: str) -> None:
        self._enter("challenge_and_verify")
        account = self._require_session()
        stored = self._owned(account, factor_id)
        if not self._totp(stored).verify(code, valid_window=self.valid_window):
            raise ProviderError(
                "Invalid TOTP code entered", code="mfa_verification_failed", status=422
            )
        stored.status = FactorStatus.VERIFIED
        self._assurance = "aal2"

    async def unenroll_factor(self, factor_id: str) -> None:
        self._enter("unenroll_factor")
        account = self._require_session()
        stored = self._owned(account, factor_id)
        if stored.status is FactorStatus.VERIFIED and self._assurance != "aal2":
            raise ProviderError(
                "AAL2 required to unenroll verified factor",
                code="insufficient_aal",
                status=403,
            )
        del account.factors[factor_id]

    # ── internals ────────────────────────────────────────────────

    def _enter(self, operation: str) -> None:
        self.calls.append(operation)
        if self.unavailable:
            raise TransportError()
        queued = self._failures.get(operation)
        if queued:
            raise queued.pop(0)

    def _require_session(self) -> _Account:
        if self._current is None:
            raise ProviderError(
                "Auth session missing!", code="session_not_found", status=401
            )
        return self._current

    def _owned(self, account: _Account, factor_id: str) -> _StoredFactor:
        stored = account.factors.get(factor_id)
        if stored is None:
            raise ProviderError(
                "Factor not found", code="mfa_factor_not_found", status=404
            )
        return stored

    def _find(self, factor_id: str) -> _StoredFactor:
        for account in self._accounts.values():
            if factor_id in account.factors:
                return account.factors[factor_id]
        raise KeyError(factor_id)

    def _totp(self, stored: _StoredFactor) -> pyotp.TOTP:
        return pyotp.TOTP(
            stored.secret,
            digits=self.digits,
            interval=self.interval,
            issuer=self.issuer,
        )


__all__: list[str] = ["InMemoryIdentityProvider"]
