"""
Error types for the Fleet Status API.

Every error that can reach the request handler carries the HTTP status code
it maps to, so the handler never has to reclassify anything.
"""

from typing import Optional

NO_EVENTS_FOUND_MESSAGE = "No events found"


class StatusError(Exception):
    """Base class for errors that know their HTTP status code."""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class NoEventsFoundError(StatusError):
    """No usable event exists for the device (empty, expired or corrupt)."""

    status_code = 404

    def __init__(self, device_id: str = ''):
        super().__init__(NO_EVENTS_FOUND_MESSAGE)
        self.device_id = device_id


class QueryFailedError(StatusError):
    """The record source failed; surfaced as an internal error."""

    status_code = 500

    def __init__(self, device_id: str, cause: Exception):
        super().__init__(f"Failed to get records for device {device_id}: {cause}")
        self.device_id = device_id


class EventDecodeError(ValueError):
    """Stored record data could not be decoded into an Event."""


class RecordSourceError(Exception):
    """Raised by record source implementations when a query fails."""


class RecordSourceTimeoutError(RecordSourceError):
    """The request deadline expired before the record source could answer."""
