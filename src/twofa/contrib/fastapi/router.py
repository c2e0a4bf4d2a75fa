"""Status and reset routes for the two-factor front end."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Depends

from ...service import TwoFactorService
from ...session import Session
from .dependencies import require_authenticated_session, to_http_exception

if TYPE_CHECKING:
    from collections.abc import Callable

RESET_MESSAGE = "All two-factor authenticators were removed."


def create_two_factor_router(
    *,
    get_session: Callable[..., Any],
    get_service: Callable[..., Any],
    prefix: str = "/mfa",
    tags: list[str] | None = None,
) -> APIRouter:
    """Create the router serving the two-factor status query and reset command.

    ``GET {prefix}`` returns ``{"isEnabled", "hasUnverified", "totalFactors"}``.
    ``DELETE {prefix}`` removes every factor best-effort and returns
    ``{"success": true, "message": ..., "results": [...]}``.

    Args:
        get_session: Dependency returning the caller's Session (or None).
        get_service: Dependency returning a TwoFactorService bound to the
            caller's identity provider client.
        prefix: Route prefix.
        tags: OpenAPI tags.

    Returns:
        APIRouter to include in the application.

    Example:
        ```python
        app.include_router(
            create_two_factor_router(
                get_session=session_from_cookie,
                get_service=lambda: TwoFactorService(provider),
                prefix="/api/auth/mfa",
            )
        )
        ```
    """
    router = APIRouter(prefix=prefix, tags=tags or ["two-factor"])
    require_session = require_authenticated_session(get_session)

    @router.get("")
    async def two_factor_status(
        session: Session = Depends(require_session),  # noqa: B008
        service: TwoFactorService = Depends(get_service),  # noqa: B008
    ) -> dict[str, Any]:
        try:
            summary = await service.status(session)
        except Exception as e:
            raise to_http_exception(e) from e
        return dict(summary.as_status())

    @router.delete("")
    async def reset_two_factor(
        session: Session = Depends(require_session),  # noqa: B008
        service: TwoFactorService = Depends(get_service),  # noqa: B008
    ) -> dict[str, Any]:
        try:
            report = await service.reset(session)
        except Exception as e:
            raise to_http_exception(e) from e
        return {
            "success": True,
            "message": RESET_MESSAGE,
            "results": [r.to_dict() for r in report.results],
        }

    return router


__all__: list[str] = ["RESET_MESSAGE", "create_two_factor_router"]
