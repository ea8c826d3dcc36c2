"""
Occupancy Resolver Service.
Classifies every space of a lot as available or occupied at an instant.
"""
import logging
from collections import defaultdict
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional

from app.config import get_settings
from app.core.errors import InconsistentStateError
from app.schemas.parking import ParkingLot, SpaceOccupancy, SpaceStatus, LotOccupancy
from app.schemas.reservation import Reservation, ReservationOccurrence, ReservationStatus, to_naive_local
from app.services.space_registry import check_registry

logger = logging.getLogger(__name__)


def active_occurrences(reservations: Iterable[Reservation]) -> List[ReservationOccurrence]:
    """Occurrences for stored reservations whose status is active."""
    return [
        ReservationOccurrence(
            user_id=r.user_id,
            parking_lot_id=r.parking_lot_id,
            space_id=r.space_id,
            starts_at=r.start_time,
            ends_at=r.end_time,
        )
        for r in reservations
        if r.status == ReservationStatus.ACTIVE.value
    ]


def occupant_names(reservations: Iterable[Reservation]) -> Dict[str, str]:
    """Display names carried on stored reservations, keyed by user id."""
    return {str(r.user_id): r.user_name for r in reservations if r.user_name}


def _display_name(user_id, names: Mapping[str, str]) -> str:
    return names.get(str(user_id)) or f"User {user_id}"


def resolve_occupancy(
    lot: ParkingLot,
    occurrences: Iterable[ReservationOccurrence],
    at: datetime,
    names: Optional[Mapping[str, str]] = None,
    strict: bool = False,
) -> LotOccupancy:
    """
    Resolve space status for `lot` at instant `at`.

    An aware `at` is converted to naive local time first. A space is
    occupied when an occurrence for this lot and space satisfies
    starts_at <= at <= ends_at. With overlapping occurrences the first one
    in `occurrences` wins. Totals use rows * cols, so a registry that does
    not match the grid shows up as a mismatch; with `strict` it raises.
    """
    if strict:
        check_registry(lot)
    elif len(lot.spaces) != lot.rows * lot.cols:
        logger.warning(
            "Lot %s has %s spaces for a %sx%s grid",
            lot.id, len(lot.spaces), lot.rows, lot.cols,
        )

    at = to_naive_local(at)
    names = names or {}
    display_format = get_settings().occupied_until_format

    by_space: Dict[int, List[ReservationOccurrence]] = defaultdict(list)
    for occurrence in occurrences:
        # An unsaved lot (no id) owns no occurrences
        if lot.id is not None and str(occurrence.parking_lot_id) == str(lot.id):
            by_space[occurrence.space_id].append(occurrence)

    results: List[SpaceOccupancy] = []
    for space in lot.spaces:
        match = next(
            (o for o in by_space.get(space.id, []) if o.starts_at <= at <= o.ends_at),
            None,
        )
        if match is None:
            results.append(SpaceOccupancy(
                space_id=space.id,
                row=space.row,
                col=space.col,
                type=space.type,
                status=SpaceStatus.AVAILABLE,
            ))
            continue

        results.append(SpaceOccupancy(
            space_id=space.id,
            row=space.row,
            col=space.col,
            type=space.type,
            status=SpaceStatus.OCCUPIED,
            occupied_by=_display_name(match.user_id, names),
            occupied_until=match.ends_at,
            occupied_until_label=match.ends_at.strftime(display_format),
        ))

    total_spots = lot.rows * lot.cols
    occupied_spots = sum(1 for r in results if r.status == SpaceStatus.OCCUPIED)

    return LotOccupancy(
        lot_id=lot.id,
        name=lot.name,
        at=at,
        spaces=results,
        total_spots=total_spots,
        occupied_spots=occupied_spots,
        available_spots=total_spots - occupied_spots,
    )


def resolve_reservations(
    lot: ParkingLot,
    reservations: Iterable[Reservation],
    at: datetime,
    strict: bool = False,
) -> LotOccupancy:
    """Resolve occupancy straight from stored reservation records."""
    reservations = list(reservations)
    return resolve_occupancy(
        lot,
        active_occurrences(reservations),
        at,
        names=occupant_names(reservations),
        strict=strict,
    )


def space_occupancy(result: LotOccupancy, space_id: int) -> SpaceOccupancy:
    """Status of one space; the id must come from the lot's own registry."""
    for space in result.spaces:
        if space.space_id == space_id:
            return space
    raise InconsistentStateError(f"Space {space_id} is not registered in lot {result.lot_id}")
