"""
Parking lot API router.
Stateless endpoints: each request carries the lot snapshot and gets a new one back.
"""
from datetime import datetime
from fastapi import APIRouter, HTTPException
from app.core.errors import ParkingCoreError, core_error_to_http
from app.schemas.parking import (
    ParkingLot,
    LotCreateRequest,
    LotResizeRequest,
    MergeRowsRequest,
    SpaceTypeUpdateRequest,
    OccupancyRequest,
    LotLayoutResponse,
    LotOccupancy,
)
from app.services.lot_geometry import build_layout, merge_rows, reset_merges
from app.services.space_registry import create_lot, resize_lot, update_space_type
from app.services.occupancy import active_occurrences, occupant_names, resolve_occupancy

router = APIRouter(prefix="/api/lots", tags=["Lots"])


@router.post("", response_model=ParkingLot)
async def create_parking_lot(request: LotCreateRequest):
    """Create a lot with all-regular spaces."""
    try:
        return create_lot(request.name, request.rows, request.cols, lot_id=request.id)
    except ParkingCoreError as e:
        raise core_error_to_http(e)


@router.post("/layout", response_model=LotLayoutResponse)
async def get_lot_layout(lot: ParkingLot):
    """Plan coordinates for every space plus lot width and height."""
    try:
        return build_layout(lot)
    except ParkingCoreError as e:
        raise core_error_to_http(e)


@router.post("/resize", response_model=ParkingLot)
async def resize_parking_lot(request: LotResizeRequest):
    """Change dimensions, keeping space types where cells still exist."""
    try:
        return resize_lot(request.lot, request.rows, request.cols)
    except ParkingCoreError as e:
        raise core_error_to_http(e)


@router.post("/merge", response_model=ParkingLot)
async def merge_lot_rows(request: MergeRowsRequest):
    """Merge two adjacent rows, removing the aisle between them."""
    try:
        return merge_rows(request.lot, request.row_a, request.row_b)
    except ParkingCoreError as e:
        raise core_error_to_http(e)


@router.post("/merge/reset", response_model=ParkingLot)
async def reset_lot_merges(lot: ParkingLot):
    """Clear all row merges."""
    return reset_merges(lot)


@router.post("/space-type", response_model=ParkingLot)
async def set_space_type(request: SpaceTypeUpdateRequest):
    """Reclassify a single space."""
    try:
        return update_space_type(request.lot, request.space_id, request.type)
    except ParkingCoreError as e:
        raise core_error_to_http(e)


@router.post("/occupancy", response_model=LotOccupancy)
async def get_lot_occupancy(request: OccupancyRequest):
    """
    Resolve which spaces are occupied.
    Uses the server clock when no query instant is given.
    """
    at = request.at or datetime.now()

    # Names passed explicitly take precedence over names on reservations
    names = occupant_names(request.reservations)
    names.update(request.occupant_names)

    occurrences = active_occurrences(request.reservations) + list(request.occurrences)

    try:
        return resolve_occupancy(request.lot, occurrences, at, names=names, strict=request.strict_registry)
    except ParkingCoreError as e:
        raise core_error_to_http(e)
