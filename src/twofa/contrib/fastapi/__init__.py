"""FastAPI integration for twofa."""

from .dependencies import (
    INTERNAL_ERROR_DETAIL,
    require_authenticated_session,
    to_http_exception,
)
from .router import RESET_MESSAGE, create_two_factor_router

__all__: list[str] = [
    # Router
    "create_two_factor_router",
    "RESET_MESSAGE",
    # Dependencies
    "require_authenticated_session",
    "to_http_exception",
    "INTERNAL_ERROR_DETAIL",
]
