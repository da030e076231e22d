# lifecycle/errors.py - Failure kinds raised by the booking lifecycle core
from fastapi import status


class LifecycleError(Exception):
    """Base class: every failure carries a kind and a human-readable message."""
    kind = "LifecycleError"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"success": False, "kind": self.kind, "message": self.message}


class NotFound(LifecycleError):
    kind = "NotFound"
    status_code = status.HTTP_404_NOT_FOUND


class Forbidden(LifecycleError):
    kind = "Forbidden"
    status_code = status.HTTP_403_FORBIDDEN


class InvalidState(LifecycleError):
    kind = "InvalidState"
    status_code = status.HTTP_409_CONFLICT


class InvalidTransition(InvalidState):
    """No edge exists from the booking's current status to the requested one."""

    def __init__(self, current, attempted):
        current = getattr(current, "value", current)
        attempted = getattr(attempted, "value", attempted)
        super().__init__(f"Cannot move booking from {current} to {attempted}")
        self.current = current
        self.attempted = attempted


class TechnicianUnavailable(LifecycleError):
    kind = "TechnicianUnavailable"
    status_code = status.HTTP_409_CONFLICT


class Conflict(LifecycleError):
    kind = "Conflict"
    status_code = status.HTTP_409_CONFLICT


class ValidationError(LifecycleError):
    kind = "ValidationError"
    status_code = 422
