"""Tests for the Session state-machine value."""

from __future__ import annotations

import asyncio

import pytest

from twofa import (
    AssuranceLevel,
    LoginState,
    PendingEnrollment,
    Principal,
    Session,
    SessionBusyError,
    TotpEnrollment,
    UnauthorizedError,
)


def _authenticated() -> Session:
    session = Session()
    session.principal = Principal(user_id="u1", email="a@example.com")
    session.state = LoginState.AUTHENTICATED
    session.assurance = AssuranceLevel.AAL1
    return session


class TestSession:
    def test_new_session_is_idle(self) -> None:
        session = Session()

        assert session.state is LoginState.IDLE
        assert not session.is_authenticated
        assert not session.busy

    def test_require_authenticated(self) -> None:
        with pytest.raises(UnauthorizedError):
            Session().require_authenticated()

        assert _authenticated().require_authenticated().user_id == "u1"

    def test_elevation(self) -> None:
        session = _authenticated()
        assert not session.is_elevated

        session.assurance = AssuranceLevel.AAL2
        assert session.is_elevated

    def test_reset(self) -> None:
        session = _authenticated()
        session.provider_session_active = True
        session.pending_factor_id = "f1"
        session.enrollment = PendingEnrollment.from_enrollment(
            TotpEnrollment(factor_id="f1", secret="S", uri="otpauth://totp/x")
        )

        session.reset()

        assert session.state is LoginState.IDLE
        assert session.principal is None
        assert session.enrollment is None
        assert session.pending_factor_id is None
        assert not session.provider_session_active


class TestOperationGate:
    @pytest.mark.asyncio
    async def test_nested_operation_is_rejected(self) -> None:
        session = Session()

        async with session.operation("first"):
            assert session.busy
            with pytest.raises(SessionBusyError, match="second"):
                async with session.operation("second"):
                    pass

        assert not session.busy

    @pytest.mark.asyncio
    async def test_flag_released_on_error(self) -> None:
        session = Session()

        with pytest.raises(RuntimeError):
            async with session.operation("failing"):
                raise RuntimeError("boom")

        assert not session.busy

    @pytest.mark.asyncio
    async def test_concurrent_tasks(self) -> None:
        session = Session()
        started = asyncio.Event()
        release = asyncio.Event()

        async def slow() -> None:
            async with session.operation("slow"):
                started.set()
                await release.wait()

        task = asyncio.create_task(slow())
        await started.wait()

        with pytest.raises(SessionBusyError):
            async with session.operation("fast"):
                pass

        release.set()
        await task
        assert not session.busy
