"""FastAPI dependencies for the two-factor routes.

Maps the twofa error taxonomy onto HTTP status codes and guards routes that
need an authenticated Session.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fastapi import Depends, HTTPException

from ...exceptions import SessionBusyError, TwoFactorError, UnauthorizedError
from ...messages import describe_error
from ...session import Session

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

INTERNAL_ERROR_DETAIL = "Internal server error"


def to_http_exception(error: Exception) -> HTTPException:
    """Translate an error raised by a flow into an HTTPException.

    - UnauthorizedError: 401 ``"Unauthorized"``
    - SessionBusyError: 409 with the user message
    - any other TwoFactorError: 400 with ``{"kind", "message", "remediation"}``
    - anything else: logged, 500 ``"Internal server error"``

    Args:
        error: The error raised while serving the request.

    Returns:
        The HTTPException to raise.
    """
    if isinstance(error, UnauthorizedError):
        return HTTPException(status_code=401, detail=error.user_message)
    if isinstance(error, SessionBusyError):
        return HTTPException(status_code=409, detail=error.user_message)
    if isinstance(error, TwoFactorError):
        return HTTPException(status_code=400, detail=describe_error(error).to_dict())
    logger.exception("Unexpected error in two-factor route", exc_info=error)
    return HTTPException(status_code=500, detail=INTERNAL_ERROR_DETAIL)


def require_authenticated_session(
    get_session: Callable[..., Any],
) -> Callable[..., Session]:
    """Create a dependency that yields an authenticated Session or raises 401.

    Args:
        get_session: Application dependency returning the caller's Session,
            or None when there is none.

    Returns:
        Dependency function.

    Example:
        ```python
        require_session = require_authenticated_session(get_session)

        @router.get("/me")
        def me(session: Session = Depends(require_session)):
            return {"user_id": session.principal.user_id}
        ```
    """

    def dependency(
        session: Session | None = Depends(get_session),  # noqa: B008
    ) -> Session:
        if session is None or not session.is_authenticated:
            raise to_http_exception(UnauthorizedError())
        return session

    return dependency


__all__: list[str] = [
    "INTERNAL_ERROR_DETAIL",
    "to_http_exception",
    "require_authenticated_session",
]
