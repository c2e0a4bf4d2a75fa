"""Configuration for the two-factor flows."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TwoFactorConfig:
    """Two-factor configuration.

    Attributes:
        provider_name: Identity provider label used in audit events and metrics.
        factor_type: Factor type requested on enrollment (only TOTP is supported).
        friendly_name: Fixed label new factors are enrolled under. Providers
            reject a second factor with the same label.
        code_length: Number of digits in a TOTP code.
    """

    provider_name: str = "identity-provider"
    factor_type: str = "totp"
    friendly_name: str | None = None
    code_length: int = 6

    def __post_init__(self) -> None:
        if self.factor_type != "totp":
            raise ValueError(f"Unsupported factor type: {self.factor_type!r}")
        if self.code_length <= 0:
            raise ValueError("code_length must be positive")


__all__: list[str] = ["TwoFactorConfig"]
