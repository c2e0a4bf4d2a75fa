"""Audit events for login and second-factor operations.

Flows record these events when an IAuthAuditStore is injected. Each event
names the factor it concerns, if any, so a factor's history can be followed
from enrollment to removal.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from enum import Enum
from typing import Any


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuthEventType(str, Enum):
    """Kinds of audit events, named ``auth.<resource>.<action>``."""

    # Login
    LOGIN_SUCCESS = "auth.login.success"
    LOGIN_FAILED = "auth.login.failed"
    LOGIN_CHALLENGE_REQUIRED = "auth.login.challenge_required"
    SESSION_DESTROYED = "auth.session.destroyed"

    # Factor lifecycle
    MFA_ENROLLMENT_STARTED = "auth.mfa.enrollment_started"
    MFA_ENROLLMENT_CANCELLED = "auth.mfa.enrollment_cancelled"
    MFA_ENABLED = "auth.mfa.enabled"
    MFA_DISABLED = "auth.mfa.disabled"
    MFA_RESET = "auth.mfa.reset"

    # Challenges
    MFA_VERIFIED = "auth.mfa.verified"
    MFA_FAILED = "auth.mfa.failed"


@dataclass(frozen=True)
class AuthAuditEvent:
    """One audited step of a login or factor lifecycle.

    Attributes:
        event_type: What happened.
        principal_id: User the event concerns, when known.
        provider: Identity provider label from TwoFactorConfig.
        factor_id: Factor the event concerns, if any.
        success: False for rejected or failed steps.
        error_code: Error kind of a failed step.
        error_message: Error text of a failed step.
        metadata: Event-specific extras (method, removed ids, ...).
        timestamp: UTC time the event was created.
    """

    event_type: AuthEventType
    principal_id: str | None = None
    provider: str = "unknown"
    factor_id: str | None = None
    success: bool = True
    error_code: str | None = None
    error_message: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        if not self.success and self.error_code is None:
            object.__setattr__(self, "error_code", "UNKNOWN_ERROR")

    def to_dict(self) -> dict[str, Any]:
        """Render the event as JSON-compatible values."""
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["event_type"] = self.event_type.value
        data["timestamp"] = self.timestamp.isoformat()
        data["metadata"] = dict(self.metadata)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AuthAuditEvent:
        """Rebuild an event rendered by ``to_dict``.

        Raises:
            ValueError: If ``event_type`` is missing or unknown.
        """
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known and v is not None}
        values["event_type"] = _parse_event_type(data.get("event_type"))
        values["timestamp"] = _parse_timestamp(data.get("timestamp"))
        values["metadata"] = dict(data.get("metadata") or {})
        return cls(**values)


def _parse_event_type(raw: Any) -> AuthEventType:
    if raw is None:
        raise ValueError("Missing required 'event_type'")
    try:
        return AuthEventType(raw)
    except ValueError as e:
        raise ValueError(f"Invalid event_type: {raw}") from e


def _parse_timestamp(raw: Any) -> datetime:
    if raw is None:
        return _utcnow()
    value = datetime.fromisoformat(raw) if isinstance(raw, str) else raw
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


# ═══════════════════════════════════════════════════════════════
# EVENT FACTORY FUNCTIONS
# ═══════════════════════════════════════════════════════════════


def login_success_event(
    principal_id: str,
    provider: str,
    *,
    second_factor: bool = False,
) -> AuthAuditEvent:
    """A login reached AUTHENTICATED."""
    return AuthAuditEvent(
        event_type=AuthEventType.LOGIN_SUCCESS,
        principal_id=principal_id,
        provider=provider,
        metadata={"second_factor": second_factor},
    )


def login_failed_event(
    provider: str,
    *,
    email: str | None = None,
    principal_id: str | None = None,
    error_code: str = "authentication_failed",
    error_message: str | None = None,
) -> AuthAuditEvent:
    """Password verification was rejected."""
    return AuthAuditEvent(
        event_type=AuthEventType.LOGIN_FAILED,
        principal_id=principal_id,
        provider=provider,
        success=False,
        error_code=error_code,
        error_message=error_message,
        metadata={"email": email} if email else {},
    )


def challenge_required_event(
    principal_id: str,
    provider: str,
    *,
    factor_id: str,
) -> AuthAuditEvent:
    """A login now waits for a code for ``factor_id``."""
    return AuthAuditEvent(
        event_type=AuthEventType.LOGIN_CHALLENGE_REQUIRED,
        principal_id=principal_id,
        provider=provider,
        factor_id=factor_id,
    )


def session_destroyed_event(
    principal_id: str | None,
    provider: str,
    *,
    reason: str | None = None,
) -> AuthAuditEvent:
    """The provider session was terminated (sign-out or a new login)."""
    return AuthAuditEvent(
        event_type=AuthEventType.SESSION_DESTROYED,
        principal_id=principal_id,
        provider=provider,
        metadata={"reason": reason} if reason else {},
    )


def mfa_event(
    event_type: AuthEventType,
    principal_id: str,
    provider: str,
    *,
    method: str = "totp",
    factor_id: str | None = None,
    success: bool = True,
    error_code: str | None = None,
    error_message: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> AuthAuditEvent:
    """A factor lifecycle or challenge step."""
    return AuthAuditEvent(
        event_type=event_type,
        principal_id=principal_id,
        provider=provider,
        factor_id=factor_id,
        success=success,
        error_code=error_code,
        error_message=error_message,
        metadata={"method": method, **(metadata or {})},
    )


__all__: list[str] = [
    "AuthEventType",
    "AuthAuditEvent",
    "login_success_event",
    "login_failed_event",
    "challenge_required_event",
    "session_destroyed_event",
    "mfa_event",
]
