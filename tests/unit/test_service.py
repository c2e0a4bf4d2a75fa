"""Tests for the TwoFactorService facade."""

from __future__ import annotations

from collections.abc import Awaitable, Callable

import pytest

from twofa import (
    InMemoryIdentityProvider,
    LoginState,
    Session,
    TwoFactorConfig,
    TwoFactorService,
    UnauthorizedError,
)


class TestTwoFactorService:
    def test_flows_share_configuration(
        self, provider: InMemoryIdentityProvider
    ) -> None:
        config = TwoFactorConfig(provider_name="supabase")

        service = TwoFactorService(provider, config=config)

        assert service.login.config is config
        assert service.enrollment.config is config
        assert service.revocation.config is config
        assert service.enrollment.provider is provider

    @pytest.mark.asyncio
    async def test_status_requires_authentication(
        self, service: TwoFactorService, session: Session
    ) -> None:
        with pytest.raises(UnauthorizedError):
            await service.status(session)

    @pytest.mark.asyncio
    async def test_status_tracks_lifecycle(
        self,
        service: TwoFactorService,
        provider: InMemoryIdentityProvider,
        session: Session,
        sign_in: Callable[[Session], Awaitable[LoginState]],
    ) -> None:
        await sign_in(session)
        assert not (await service.status(session)).is_enabled

        pending = await service.enrollment.begin(session)
        status = await service.status(session)
        assert status.has_unverified
        assert not status.is_enabled

        await service.enrollment.verify(
            session, provider.current_code(pending.factor_id)
        )
        status = await service.status(session)
        assert status.is_enabled
        assert not status.has_unverified

        await service.revocation.disable(session, confirmed=True)
        assert (await service.status(session)).total == 0

    @pytest.mark.asyncio
    async def test_reset_needs_no_confirmation_flag(
        self,
        service: TwoFactorService,
        provider: InMemoryIdentityProvider,
        session: Session,
        email: str,
        sign_in: Callable[[Session], Awaitable[LoginState]],
    ) -> None:
        await sign_in(session)
        provider.add_factor(email, verified=False)

        report = await service.reset(session)

        assert report.ok
        assert provider.factors_for(email) == []

    @pytest.mark.asyncio
    async def test_second_login_requires_code_after_enrollment(
        self,
        service: TwoFactorService,
        provider: InMemoryIdentityProvider,
        session: Session,
        email: str,
        password: str,
        sign_in: Callable[[Session], Awaitable[LoginState]],
    ) -> None:
        await sign_in(session)
        pending = await service.enrollment.begin(session)
        await service.enrollment.verify(
            session, provider.current_code(pending.factor_id)
        )
        await service.login.sign_out(session)

        state = await service.login.submit_password(session, email, password)

        assert state is LoginState.AWAITING_SECOND_FACTOR
        assert session.pending_factor_id == pending.factor_id
