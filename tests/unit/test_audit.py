"""Tests for audit events and InMemoryAuthAuditStore."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from twofa.audit import (
    AuthAuditEvent,
    AuthEventType,
    InMemoryAuthAuditStore,
    challenge_required_event,
    login_failed_event,
    login_success_event,
    mfa_event,
    session_destroyed_event,
)


@pytest.fixture
def store() -> InMemoryAuthAuditStore:
    return InMemoryAuthAuditStore()


class TestAuthAuditEvent:
    def test_failure_gets_default_error_code(self) -> None:
        event = AuthAuditEvent(event_type=AuthEventType.MFA_FAILED, success=False)

        assert event.error_code == "UNKNOWN_ERROR"

    def test_dict_round_trip(self) -> None:
        event = mfa_event(
            AuthEventType.MFA_ENABLED, "u1", "memory", factor_id="f1"
        )

        restored = AuthAuditEvent.from_dict(event.to_dict())

        assert restored == event
        assert restored.factor_id == "f1"
        assert restored.metadata == {"method": "totp"}

    @pytest.mark.parametrize(
        "data",
        [{}, {"event_type": "auth.unknown"}],
    )
    def test_from_dict_rejects_bad_type(self, data: dict[str, str]) -> None:
        with pytest.raises(ValueError):
            AuthAuditEvent.from_dict(data)

    def test_naive_timestamp_is_utc(self) -> None:
        event = AuthAuditEvent.from_dict(
            {"event_type": "auth.mfa.reset", "timestamp": "2024-01-01T00:00:00"}
        )

        assert event.timestamp.tzinfo is timezone.utc

    def test_factories(self) -> None:
        assert login_success_event("u1", "p", second_factor=True).metadata == {
            "second_factor": True
        }
        assert login_failed_event("p", email="a@example.com").metadata == {
            "email": "a@example.com"
        }
        assert challenge_required_event("u1", "p", factor_id="f1").factor_id == "f1"
        assert session_destroyed_event(None, "p").metadata == {}


class TestInMemoryAuthAuditStore:
    @pytest.mark.asyncio
    async def test_events_most_recent_first(
        self, store: InMemoryAuthAuditStore
    ) -> None:
        await store.record(login_success_event("u1", "p"))
        await store.record(mfa_event(AuthEventType.MFA_ENABLED, "u1", "p"))
        await store.record(login_success_event("u2", "p"))

        events = await store.get_events("u1")

        assert [e.event_type for e in events] == [
            AuthEventType.MFA_ENABLED,
            AuthEventType.LOGIN_SUCCESS,
        ]

    @pytest.mark.asyncio
    async def test_filter_and_limit(self, store: InMemoryAuthAuditStore) -> None:
        for _ in range(3):
            await store.record(login_success_event("u1", "p"))
        await store.record(mfa_event(AuthEventType.MFA_RESET, "u1", "p"))

        assert len(await store.get_events("u1", limit=2)) == 2
        reset = await store.get_events("u1", event_types=[AuthEventType.MFA_RESET])
        assert len(reset) == 1
        assert len(await store.get_events_by_type(AuthEventType.LOGIN_SUCCESS)) == 3

    @pytest.mark.asyncio
    async def test_recent_failures_window(
        self, store: InMemoryAuthAuditStore
    ) -> None:
        old = AuthAuditEvent(
            event_type=AuthEventType.LOGIN_FAILED,
            success=False,
            timestamp=datetime.now(timezone.utc) - timedelta(hours=1),
        )
        await store.record(old)
        await store.record(login_failed_event("p", principal_id="u1"))
        await store.record(login_success_event("u1", "p"))

        failures = await store.get_recent_failures(minutes=15)
        by_principal = await store.get_recent_failures(principal_id="u1")

        assert len(failures) == 1
        assert by_principal == failures

    @pytest.mark.asyncio
    async def test_clear(self, store: InMemoryAuthAuditStore) -> None:
        await store.record(login_success_event("u1", "p"))

        store.clear()

        assert store.count() == 0
        assert store.count_by_type(AuthEventType.LOGIN_SUCCESS) == 0

    @pytest.mark.asyncio
    async def test_factor_history(self, store: InMemoryAuthAuditStore) -> None:
        await store.record(
            mfa_event(AuthEventType.MFA_ENROLLMENT_STARTED, "u1", "p", factor_id="f1")
        )
        await store.record(mfa_event(AuthEventType.MFA_ENABLED, "u1", "p", factor_id="f1"))
        await store.record(mfa_event(AuthEventType.MFA_ENABLED, "u1", "p", factor_id="f2"))

        history = await store.get_events_for_factor("f1")

        assert [e.event_type for e in history] == [
            AuthEventType.MFA_ENABLED,
            AuthEventType.MFA_ENROLLMENT_STARTED,
        ]

    @pytest.mark.asyncio
    async def test_bounded_retention(self) -> None:
        store = InMemoryAuthAuditStore(max_events=2)
        for principal_id in ("u1", "u2", "u3"):
            await store.record(login_success_event(principal_id, "p"))

        assert store.count() == 2
        assert await store.get_events("u1") == []
