"""Unit tests for two-factor metrics and tracing."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from prometheus_client import CollectorRegistry

from twofa import Principal, Session, TwoFactorService
from twofa.audit import AuthEventType, mfa_event
from twofa.exceptions import ChallengeError
from twofa.observability import TwoFactorMetrics, TwoFactorTracing


class TestTwoFactorMetrics:
    """Tests for TwoFactorMetrics."""

    def test_operation_success(self, metrics_registry: CollectorRegistry) -> None:
        with TwoFactorMetrics.operation("reset", provider="memory"):
            pass

        labels = {"provider": "memory", "operation": "reset", "result": "success"}
        assert metrics_registry.get_sample_value("twofa_operations_total", labels) == 1
        assert (
            metrics_registry.get_sample_value(
                "twofa_operation_duration_seconds_count",
                {"provider": "memory", "operation": "reset"},
            )
            == 1
        )

    def test_operation_error(self, metrics_registry: CollectorRegistry) -> None:
        with pytest.raises(ChallengeError):
            with TwoFactorMetrics.operation("login.code", provider="memory"):
                raise ChallengeError()

        labels = {"provider": "memory", "operation": "login.code", "result": "error"}
        assert metrics_registry.get_sample_value("twofa_operations_total", labels) == 1

    def test_record_event(self, metrics_registry: CollectorRegistry) -> None:
        TwoFactorMetrics.record_event(
            mfa_event(AuthEventType.MFA_FAILED, "u1", "memory", success=False)
        )

        labels = {"provider": "memory", "event": "auth.mfa.failed", "result": "failure"}
        assert metrics_registry.get_sample_value("twofa_audit_events_total", labels) == 1

    def test_recording_failure_is_not_raised(self) -> None:
        broken = MagicMock()
        broken.labels.side_effect = RuntimeError("registry gone")
        with patch(
            "twofa.observability.metrics._registry._histogram", broken
        ), patch("twofa.observability.metrics._registry._initialized", True):
            with TwoFactorMetrics.operation("reset"):
                pass

    @pytest.mark.asyncio
    async def test_flows_are_measured(
        self,
        metrics_registry: CollectorRegistry,
        service: TwoFactorService,
        session: Session,
        email: str,
        password: str,
    ) -> None:
        await service.login.submit_password(session, email, password)

        labels = {
            "provider": "memory",
            "operation": "login.password",
            "result": "success",
        }
        assert metrics_registry.get_sample_value("twofa_operations_total", labels) == 1


class TestTwoFactorTracing:
    """Tests for TwoFactorTracing."""

    def test_span_sets_attributes(self) -> None:
        mock_tracer = MagicMock()
        mock_span = MagicMock()
        mock_tracer.start_as_current_span.return_value.__enter__.return_value = (
            mock_span
        )

        with patch("twofa.observability.tracing.trace") as mock_trace:
            mock_trace.get_tracer.return_value = mock_tracer
            with TwoFactorTracing.span(
                "enrollment.begin", provider="memory", attributes={"attempt": 2}
            ) as span:
                TwoFactorTracing.set_principal(
                    span, Principal(user_id="u1", email="a@example.com")
                )

        mock_tracer.start_as_current_span.assert_called_once()
        assert mock_tracer.start_as_current_span.call_args.args[0] == (
            "twofa.enrollment.begin"
        )
        mock_span.set_attribute.assert_any_call("twofa.provider", "memory")
        mock_span.set_attribute.assert_any_call("attempt", "2")
        mock_span.set_attribute.assert_any_call("twofa.user_id", "u1")

    def test_span_records_error_kind(self) -> None:
        mock_tracer = MagicMock()
        mock_span = MagicMock()
        mock_tracer.start_as_current_span.return_value.__enter__.return_value = (
            mock_span
        )

        with patch("twofa.observability.tracing.trace") as mock_trace:
            mock_trace.get_tracer.return_value = mock_tracer
            with pytest.raises(ChallengeError):
                with TwoFactorTracing.span("login.code", provider="memory"):
                    raise ChallengeError()

        mock_span.set_status.assert_called_once()
        mock_span.record_exception.assert_called_once()
        mock_span.set_attribute.assert_any_call("twofa.error_kind", "invalid_code")

    def test_span_with_sdk(self) -> None:
        sdk_trace = pytest.importorskip("opentelemetry.sdk.trace")
        export = pytest.importorskip("opentelemetry.sdk.trace.export")
        in_memory = pytest.importorskip(
            "opentelemetry.sdk.trace.export.in_memory_span_exporter"
        )

        exporter = in_memory.InMemorySpanExporter()
        provider = sdk_trace.TracerProvider()
        provider.add_span_processor(export.SimpleSpanProcessor(exporter))
        tracer = provider.get_tracer("test")

        with patch("twofa.observability.tracing.trace") as mock_trace:
            mock_trace.get_tracer.return_value = tracer
            with TwoFactorTracing.span("reset", provider="memory"):
                pass

        [finished] = exporter.get_finished_spans()
        assert finished.name == "twofa.reset"
        assert finished.attributes["twofa.operation"] == "reset"

    def test_set_principal_ignores_missing(self) -> None:
        span = MagicMock()

        TwoFactorTracing.set_principal(span, None)
        TwoFactorTracing.set_principal(None, None)

        span.set_attribute.assert_not_called()

    @pytest.mark.asyncio
    async def test_flows_are_traced(
        self,
        service: TwoFactorService,
        session: Session,
        email: str,
        password: str,
    ) -> None:
        with patch.object(TwoFactorTracing, "set_principal") as set_principal:
            await service.login.submit_password(session, email, password)

        set_principal.assert_called_once()
