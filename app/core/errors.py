"""
Error types raised by the layout and reservation engine.
A single helper maps them to HTTP errors so routes stay thin.
"""
from __future__ import annotations

from fastapi import HTTPException

# ---------------------------------------------------------------------------
# Constants: status codes for known error categories
# ---------------------------------------------------------------------------

STATUS_BAD_REQUEST = 400
STATUS_CONFLICT = 409  # registry out of sync with lot dimensions
STATUS_INTERNAL_ERROR = 500


class ParkingCoreError(Exception):
    """Base class for engine errors."""


class ValidationError(ParkingCoreError):
    """
    Caller input was rejected before any state changed.
    Bad merge rows, missing reservation fields, missing recurring end date.
    """


class InconsistentStateError(ParkingCoreError):
    """
    A lot's space registry does not match its dimensions, or a space id
    is not part of the registry. Aborts the operation.
    """


# First match wins.
CORE_ERROR_STATUS: list[tuple[type[ParkingCoreError], int]] = [
    (ValidationError, STATUS_BAD_REQUEST),
    (InconsistentStateError, STATUS_CONFLICT),
]


def core_error_to_http(exc: Exception) -> HTTPException:
    """
    Map an engine exception into an HTTPException.
    Unknown errors become a 500 with the exception message.
    """
    for error_type, status_code in CORE_ERROR_STATUS:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=STATUS_INTERNAL_ERROR, detail=str(exc))
