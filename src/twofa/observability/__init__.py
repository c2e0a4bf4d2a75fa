"""Observability helpers for metrics and tracing.

Usage:
    ```python
    from twofa.observability import TwoFactorMetrics, TwoFactorTracing

    with TwoFactorMetrics.operation("reset", provider="supabase"):
        report = await flow.reset(session, confirmed=True)
    ```
"""

from __future__ import annotations

from .metrics import TwoFactorMetrics, configure_metrics
from .tracing import TRACER_NAME, TwoFactorTracing

__all__: list[str] = [
    # Metrics
    "TwoFactorMetrics",
    "configure_metrics",
    # Tracing
    "TwoFactorTracing",
    "TRACER_NAME",
]
