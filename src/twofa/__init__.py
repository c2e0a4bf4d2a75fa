"""twofa: TOTP two-factor lifecycle and login challenge core.

Password first, then a TOTP code when the account has a verified factor.
The TOTP algorithm itself belongs to an identity provider behind
IIdentityProviderPort; this package decides which calls to make and in what
order, and tracks the progress of one client on an explicit Session value.

Usage:
    ```python
    from twofa import InMemoryIdentityProvider, LoginState, Session, TwoFactorService

    provider = InMemoryIdentityProvider()
    provider.register("ana@example.com", "s3cret")
    service = TwoFactorService(provider)

    session = Session()
    state = await service.login.submit_password(session, "ana@example.com", "s3cret")
    if state is LoginState.AWAITING_SECOND_FACTOR:
        await service.login.submit_code(session, code)

    pending = await service.enrollment.begin(session)
    await service.enrollment.verify(session, code_from_authenticator)
    ```

Submodules:
    - `flows`: login, enrollment and revocation flows
    - `audit`: audit events and the in-memory audit store
    - `observability`: Prometheus metrics and OpenTelemetry spans
    - `contrib.fastapi`: status and reset routes
"""

from __future__ import annotations

# Audit
from .audit import AuthAuditEvent, AuthEventType, InMemoryAuthAuditStore

# Classification
from .classification import ProviderOperation, classify_provider_error

# Configuration
from .config import TwoFactorConfig

# Exceptions
from .exceptions import (
    AuthenticationError,
    ChallengeError,
    ConfirmationRequiredError,
    ElevationRequiredError,
    FlowStateError,
    InvalidCredentialsError,
    ProviderConflictError,
    ProviderError,
    SessionBusyError,
    TransportError,
    TwoFactorError,
    UnauthorizedError,
)

# Flows
from .flows import EnrollmentFlow, LoginChallengeFlow, RevocationFlow

# In-memory provider
from .memory import InMemoryIdentityProvider

# Messages
from .messages import describe_error, user_message

# Models
from .models import (
    BulkUnenrollReport,
    Challenge,
    Factor,
    FactorStatus,
    FactorType,
    Principal,
    TotpEnrollment,
    UnenrollResult,
)

# Ports
from .ports import IAuthAuditStore, IIdentityProviderPort, ITwoFactorStatusListener

# Registry
from .registry import FactorSummary, classify

# Service
from .service import TwoFactorService

# Session
from .session import AssuranceLevel, LoginState, PendingEnrollment, Session

__all__: list[str] = [
    # Audit
    "AuthAuditEvent",
    "AuthEventType",
    "InMemoryAuthAuditStore",
    # Classification
    "ProviderOperation",
    "classify_provider_error",
    # Configuration
    "TwoFactorConfig",
    # Exceptions
    "TwoFactorError",
    "ProviderError",
    "AuthenticationError",
    "InvalidCredentialsError",
    "ChallengeError",
    "ProviderConflictError",
    "ElevationRequiredError",
    "TransportError",
    "UnauthorizedError",
    "SessionBusyError",
    "FlowStateError",
    "ConfirmationRequiredError",
    # Flows
    "LoginChallengeFlow",
    "EnrollmentFlow",
    "RevocationFlow",
    # In-memory provider
    "InMemoryIdentityProvider",
    # Messages
    "user_message",
    "describe_error",
    # Models
    "Principal",
    "Factor",
    "FactorStatus",
    "FactorType",
    "Challenge",
    "TotpEnrollment",
    "UnenrollResult",
    "BulkUnenrollReport",
    # Ports
    "IIdentityProviderPort",
    "ITwoFactorStatusListener",
    "IAuthAuditStore",
    # Registry
    "FactorSummary",
    "classify",
    # Service
    "TwoFactorService",
    # Session
    "Session",
    "LoginState",
    "AssuranceLevel",
    "PendingEnrollment",
]
