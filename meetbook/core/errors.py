"""Typed failures raised by the scheduling services.

Each error carries the HTTP status the API layer answers with, so services
stay free of transport concerns while routes and the app-level handler
agree on a single mapping.
"""

from fastapi import status


class SchedulingError(Exception):
    """Base class for business-rule and storage failures."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(SchedulingError):
    """Malformed input: blank title, start >= end, inverted range."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(SchedulingError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(SchedulingError):
    """A state transition the current data does not allow."""

    status_code = status.HTTP_409_CONFLICT


class OverlapError(ConflictError):
    pass


class InternalError(SchedulingError):
    """Storage failure, never a business rule."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
