"""Error taxonomy shared by the scheduling services and the HTTP layer"""

from typing import Any, Optional


class SchedulingError(Exception):
    """Base error; carries the HTTP status it maps to and an optional response payload"""

    status_code = 500

    def __init__(self, message: str, payload: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.payload = payload or {}


class InvalidInputError(SchedulingError):
    """Malformed date/time/range, rejected before any persistence attempt"""

    status_code = 400


class InvalidRangeError(InvalidInputError):
    pass


class InvalidTimeFormatError(InvalidInputError):
    pass


class ConflictError(SchedulingError):
    """Overlapping schedule, duplicate slot, or an attempt to modify a booked slot"""

    status_code = 409


class NotFoundError(SchedulingError):
    status_code = 404


class PersistenceError(SchedulingError):
    status_code = 500


class AuthorizationError(SchedulingError):
    status_code = 403
