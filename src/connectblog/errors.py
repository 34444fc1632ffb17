"""Domain errors raised by the service layer.

All are ``ValueError`` subclasses. Routers let them propagate; the global
handlers in ``middleware/error_handler.py`` translate them into HTTP status
codes with :func:`to_http`.
"""

from __future__ import annotations

from fastapi import HTTPException


class ValidationFailed(ValueError):
    """Input rejected before any store mutation."""


class NotFoundError(ValueError):
    """An identifier did not resolve."""


class PermissionDeniedError(ValueError):
    """The actor does not own the resource it is acting on."""


class DuplicateActionError(ValueError):
    """The action was already applied (already liked, already following)."""


class NotFollowingError(DuplicateActionError):
    """The action's precondition state is absent (not liked, not following)."""


_STATUS = (
    (NotFoundError, 404),
    (PermissionDeniedError, 403),
    (ValidationFailed, 400),
    (DuplicateActionError, 400),
)


def to_http(exc: ValueError) -> HTTPException:
    """Map a domain error to an HTTPException carrying its message."""
    for cls, status in _STATUS:
        if isinstance(exc, cls):
            return HTTPException(status_code=status, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))
