"""Factor registry: classify a provider factor list into status flags."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .models import Factor


@dataclass(frozen=True)
class FactorSummary:
    """Classification of a principal's factors.

    Attributes:
        verified: Factors that passed a challenge.
        unverified: Factors still awaiting their first code.
    """

    verified: tuple[Factor, ...] = ()
    unverified: tuple[Factor, ...] = ()

    @property
    def is_enabled(self) -> bool:
        return len(self.verified) > 0

    @property
    def has_unverified(self) -> bool:
        return len(self.unverified) > 0

    @property
    def total(self) -> int:
        return len(self.verified) + len(self.unverified)

    def as_status(self) -> dict[str, bool | int]:
        """Render the status payload returned to the front end."""
        return {
            "isEnabled": self.is_enabled,
            "hasUnverified": self.has_unverified,
            "totalFactors": self.total,
        }


def classify(factors: Iterable[Factor]) -> FactorSummary:
    """Split factors into verified and unverified subsets.

    Pure function; provider order is preserved in both subsets.

    Args:
        factors: Factors as returned by the provider.

    Returns:
        FactorSummary with the subsets and derived flags.
    """
    verified: list[Factor] = []
    unverified: list[Factor] = []
    for factor in factors:
        (verified if factor.is_verified else unverified).append(factor)
    return FactorSummary(verified=tuple(verified), unverified=tuple(unverified))


__all__: list[str] = ["FactorSummary", "classify"]
