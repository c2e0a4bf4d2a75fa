"""Audit module for login and second-factor events."""

from __future__ import annotations

from .events import (
    AuthAuditEvent,
    AuthEventType,
    challenge_required_event,
    login_failed_event,
    login_success_event,
    mfa_event,
    session_destroyed_event,
)
from .memory import InMemoryAuthAuditStore

__all__: list[str] = [
    # Event types and classes
    "AuthEventType",
    "AuthAuditEvent",
    # Event factory functions
    "login_success_event",
    "login_failed_event",
    "challenge_required_event",
    "session_destroyed_event",
    "mfa_event",
    # Store implementations
    "InMemoryAuthAuditStore",
]
