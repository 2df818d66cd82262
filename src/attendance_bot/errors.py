"""Typed failures raised by the attendance services."""


class AttendanceBotError(Exception):
    """Base class for failures surfaced to API callers."""

    status_code = 500

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class ValidationError(AttendanceBotError):
    """Malformed or missing required input."""

    status_code = 400


class NotFound(AttendanceBotError):
    """Unknown person, session or record."""

    status_code = 404


class Conflict(AttendanceBotError):
    """The operation would violate an invariant."""

    status_code = 409


class NoActiveSession(AttendanceBotError):
    """No attendance session is currently active."""

    status_code = 400


class NotReady(AttendanceBotError):
    """The messaging platform is not connected."""

    status_code = 503


class UpstreamDeliveryFailure(AttendanceBotError):
    """A send attempt failed after the platform was ready."""

    status_code = 502


class InternalError(AttendanceBotError):
    """Store or unexpected failure."""

    status_code = 500
