"""
Reservation API router.
Expands reservation requests into occurrences for the caller to store.
"""
from typing import List
from fastapi import APIRouter
from app.core.errors import ParkingCoreError, core_error_to_http
from app.schemas.reservation import ReservationRequest, ReservationOccurrence
from app.services.recurrence import build_occurrences

router = APIRouter(prefix="/api/reservations", tags=["Reservations"])


@router.post("/occurrences", response_model=List[ReservationOccurrence])
async def expand_reservation(request: ReservationRequest):
    """
    Build the occurrence schedule for a reservation request.
    Recurring requests need an end_date.
    """
    try:
        return build_occurrences(request)
    except ParkingCoreError as e:
        raise core_error_to_http(e)
