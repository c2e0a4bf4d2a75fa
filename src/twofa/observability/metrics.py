"""Prometheus metrics for two-factor operations.

Usage:
    ```python
    from twofa.observability import TwoFactorMetrics

    with TwoFactorMetrics.operation("enrollment.begin", provider="supabase"):
        enrollment = await provider.enroll_factor("totp")
    ```
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram

_logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Generator

    from ..audit.events import AuthAuditEvent


class _TwoFactorMetricsRegistry:
    """Registry for two-factor Prometheus metrics.

    Metrics are created on first use against the configured collector
    registry (the process default unless ``configure`` was called).
    """

    def __init__(self) -> None:
        self._collector_registry: CollectorRegistry = REGISTRY
        self._histogram: Any = None
        self._counter: Any = None
        self._event_counter: Any = None
        self._initialized = False

    def configure(self, collector_registry: CollectorRegistry) -> None:
        """Register the metrics on another collector registry."""
        self._collector_registry = collector_registry
        self._initialized = False

    def _ensure_initialized(self) -> None:
        if self._initialized:
            return

        self._histogram = Histogram(
            "twofa_operation_duration_seconds",
            "Two-factor operation duration",
            ["provider", "operation"],
            registry=self._collector_registry,
        )
        self._counter = Counter(
            "twofa_operations_total",
            "Two-factor operation count",
            ["provider", "operation", "result"],
            registry=self._collector_registry,
        )
        self._event_counter = Counter(
            "twofa_audit_events_total",
            "Two-factor audit events",
            ["provider", "event", "result"],
            registry=self._collector_registry,
        )
        self._initialized = True

    @property
    def histogram(self) -> Any:
        self._ensure_initialized()
        return self._histogram

    @property
    def counter(self) -> Any:
        self._ensure_initialized()
        return self._counter

    @property
    def event_counter(self) -> Any:
        self._ensure_initialized()
        return self._event_counter


# Global registry instance
_registry = _TwoFactorMetricsRegistry()


def configure_metrics(collector_registry: CollectorRegistry) -> None:
    """Send two-factor metrics to ``collector_registry``."""
    _registry.configure(collector_registry)


class TwoFactorMetrics:
    """Helpers for recording two-factor metrics.

    Recording never interferes with the operation being measured.
    """

    @staticmethod
    @contextmanager
    def operation(
        operation: str,
        *,
        provider: str = "unknown",
    ) -> Generator[None, None, None]:
        """Context manager for timing a flow operation.

        Args:
            operation: Operation name (login.password, enrollment.verify, ...).
            provider: Identity provider name.

        Yields:
            Nothing.
        """
        result = "success"
        start = time.monotonic()

        try:
            yield
        except Exception:
            result = "error"
            raise
        finally:
            duration = time.monotonic() - start
            try:
                _registry.histogram.labels(
                    provider=provider, operation=operation
                ).observe(duration)
                _registry.counter.labels(
                    provider=provider, operation=operation, result=result
                ).inc()
            except Exception:
                _logger.debug("Failed to record operation metrics", exc_info=True)

    @staticmethod
    def record_event(event: AuthAuditEvent) -> None:
        """Count an audit event.

        Args:
            event: The audit event to count.
        """
        try:
            _registry.event_counter.labels(
                provider=event.provider,
                event=event.event_type.value,
                result="success" if event.success else "failure",
            ).inc()
        except Exception:
            _logger.debug("Failed to record audit event metric", exc_info=True)


__all__: list[str] = [
    "TwoFactorMetrics",
    "configure_metrics",
]
