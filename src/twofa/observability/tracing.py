"""OpenTelemetry spans for two-factor operations.

Spans are created from the globally configured tracer provider; without an
SDK configured they are non-recording.

Usage:
    ```python
    from twofa.observability import TwoFactorTracing

    with TwoFactorTracing.span("login.code", provider="supabase") as span:
        await provider.challenge_and_verify(factor_id, code)
    ```
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

if TYPE_CHECKING:
    from collections.abc import Generator

    from ..models import Principal

TRACER_NAME = "twofa"


class TwoFactorTracing:
    """Span helpers for two-factor operations."""

    @staticmethod
    @contextmanager
    def span(
        operation: str,
        *,
        provider: str = "unknown",
        attributes: dict[str, Any] | None = None,
    ) -> Generator[Any, None, None]:
        """Context manager for a traced flow operation.

        Args:
            operation: Operation name.
            provider: Identity provider name.
            attributes: Additional span attributes.

        Yields:
            The active span.
        """
        tracer = trace.get_tracer(TRACER_NAME)
        with tracer.start_as_current_span(
            f"twofa.{operation}", record_exception=False, set_status_on_exception=False
        ) as span:
            span.set_attribute("twofa.operation", operation)
            span.set_attribute("twofa.provider", provider)
            for key, value in (attributes or {}).items():
                span.set_attribute(key, str(value))
            try:
                yield span
            except Exception as e:
                TwoFactorTracing.set_error(span, e)
                raise

    @staticmethod
    def set_principal(span: Any, principal: Principal | None) -> None:
        """Set principal attributes on a span."""
        if span is None or principal is None:
            return
        span.set_attribute("twofa.user_id", principal.user_id)

    @staticmethod
    def set_error(span: Any, error: Exception) -> None:
        """Mark span as failed with error."""
        span.set_status(Status(StatusCode.ERROR, str(error)))
        span.record_exception(error)
        kind = getattr(error, "kind", None)
        if kind:
            span.set_attribute("twofa.error_kind", kind)


__all__: list[str] = ["TwoFactorTracing", "TRACER_NAME"]
