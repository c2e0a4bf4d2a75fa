"""Login, enrollment and revocation flows."""

from .base import BaseFlow
from .enrollment import EnrollmentFlow
from .login import LoginChallengeFlow
from .revocation import RevocationFlow

__all__: list[str] = [
    "BaseFlow",
    "LoginChallengeFlow",
    "EnrollmentFlow",
    "RevocationFlow",
]
