"""Shared fixtures for twofa unit tests."""

from __future__ import annotations

from collections.abc import Awaitable, Callable

import pytest
from prometheus_client import CollectorRegistry

from twofa import (
    InMemoryAuthAuditStore,
    InMemoryIdentityProvider,
    LoginState,
    Principal,
    Session,
    TwoFactorConfig,
    TwoFactorService,
)
from twofa.observability import configure_metrics

EMAIL = "ana@example.com"
PASSWORD = "correct horse battery staple"


class RecordingListener:
    """Status listener that remembers every notification."""

    def __init__(self) -> None:
        self.changes: list[tuple[str, bool]] = []

    async def two_factor_status_changed(
        self, principal: Principal, *, enabled: bool
    ) -> None:
        self.changes.append((principal.user_id, enabled))


def _wrong_code(provider: InMemoryIdentityProvider, factor_id: str) -> str:
    """Return a well-formed code the provider rejects for ``factor_id``."""
    for candidate in range(1_000_000):
        code = f"{candidate:06d}"
        if not provider.accepts(factor_id, code):
            return code
    raise AssertionError("every code is accepted")


async def _sign_in(
    service: TwoFactorService,
    provider: InMemoryIdentityProvider,
    session: Session,
    email: str = EMAIL,
    password: str = PASSWORD,
) -> LoginState:
    """Run the login flow to completion, answering a challenge if asked."""
    state = await service.login.submit_password(session, email, password)
    if state is LoginState.AWAITING_SECOND_FACTOR:
        assert session.pending_factor_id is not None
        state = await service.login.submit_code(
            session, provider.current_code(session.pending_factor_id)
        )
    return state


@pytest.fixture(autouse=True)
def metrics_registry() -> CollectorRegistry:
    registry = CollectorRegistry()
    configure_metrics(registry)
    return registry


@pytest.fixture
def provider() -> InMemoryIdentityProvider:
    provider = InMemoryIdentityProvider(issuer="MyBlog")
    provider.register(EMAIL, PASSWORD, user_id="user-1")
    return provider


@pytest.fixture
def audit_store() -> InMemoryAuthAuditStore:
    return InMemoryAuthAuditStore()


@pytest.fixture
def listener() -> RecordingListener:
    return RecordingListener()


@pytest.fixture
def config() -> TwoFactorConfig:
    return TwoFactorConfig(provider_name="memory")


@pytest.fixture
def service(
    provider: InMemoryIdentityProvider,
    config: TwoFactorConfig,
    audit_store: InMemoryAuthAuditStore,
    listener: RecordingListener,
) -> TwoFactorService:
    return TwoFactorService(
        provider,
        config=config,
        audit_store=audit_store,
        status_listener=listener,
    )


@pytest.fixture
def session() -> Session:
    return Session()


@pytest.fixture
def email() -> str:
    return EMAIL


@pytest.fixture
def password() -> str:
    return PASSWORD


@pytest.fixture
def wrong_code(
    provider: InMemoryIdentityProvider,
) -> Callable[[str], str]:
    return lambda factor_id: _wrong_code(provider, factor_id)


@pytest.fixture
def sign_in(
    service: TwoFactorService,
    provider: InMemoryIdentityProvider,
) -> Callable[[Session], Awaitable[LoginState]]:
    return lambda session: _sign_in(service, provider, session)
