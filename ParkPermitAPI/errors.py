"""Exceptions raised by the permit lifecycle and the static lookup tables."""

from fastapi import HTTPException, status


class LifecycleError(Exception):
    """Base exception for permit workflow errors."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(LifecycleError):
    """Required input is missing or malformed."""

    status_code = status.HTTP_400_BAD_REQUEST


class InvalidTransition(LifecycleError):
    """The record's current status does not allow the requested transition."""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str, current_status: str = None):
        self.current_status = current_status
        super().__init__(message)


class InvalidOperation(LifecycleError):
    """The operation is not permitted given the record's current state."""

    status_code = status.HTTP_409_CONFLICT


class NotFound(LifecycleError):
    """The referenced record or lookup key does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class ConfigurationError(LifecycleError):
    """Lookup against a key that the static configuration does not define."""

    status_code = status.HTTP_400_BAD_REQUEST


def to_http_exception(exc: LifecycleError) -> HTTPException:
    """
    Convert a workflow error into the HTTPException a route should raise.

    The message is passed through verbatim so the UI can show it as-is.
    """
    return HTTPException(status_code=exc.status_code, detail=exc.message)
