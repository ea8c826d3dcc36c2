"""
Space Registry Service.
Keeps a lot's space list in step with its dimensions.
"""
import logging
from collections import Counter
from typing import Dict, Iterable, List, Optional, Tuple

from app.core.errors import ValidationError, InconsistentStateError
from app.schemas.parking import ParkingLot, Space, SpaceType, LotId
from app.services.lot_geometry import validate_dimensions

logger = logging.getLogger(__name__)

Cell = Tuple[int, int]


class SpaceArena:
    """
    Space types keyed by (row, col).

    Cells outside the grid are discarded on construction. Ids are not kept
    here; they are assigned row-major, 1-based, by to_spaces().
    """

    def __init__(self, rows: int, cols: int, types: Optional[Dict[Cell, SpaceType]] = None):
        validate_dimensions(rows, cols)
        self.rows = rows
        self.cols = cols
        self._types: Dict[Cell, SpaceType] = {}
        self.dropped = 0
        for (row, col), space_type in (types or {}).items():
            if 0 <= row < rows and 0 <= col < cols:
                self._types[(row, col)] = space_type
            else:
                self.dropped += 1

    @classmethod
    def from_spaces(cls, spaces: Iterable[Space], rows: int, cols: int) -> "SpaceArena":
        types: Dict[Cell, SpaceType] = {}
        for space in spaces:
            # first entry for a cell wins
            types.setdefault((space.row, space.col), space.type)
        return cls(rows, cols, types)

    def type_at(self, row: int, col: int) -> SpaceType:
        return self._types.get((row, col), SpaceType.REGULAR)

    def to_spaces(self) -> List[Space]:
        spaces: List[Space] = []
        next_id = 1
        for row in range(self.rows):
            for col in range(self.cols):
                spaces.append(Space(id=next_id, row=row, col=col, type=self.type_at(row, col)))
                next_id += 1
        return spaces


def generate_default_spaces(rows: int, cols: int) -> List[Space]:
    """All-regular spaces for a fresh grid."""
    return SpaceArena(rows, cols).to_spaces()


def regenerate_spaces(previous: Iterable[Space], rows: int, cols: int) -> List[Space]:
    """Rebuild the space list for new dimensions, carrying types by (row, col)."""
    arena = SpaceArena.from_spaces(previous, rows, cols)
    if arena.dropped:
        logger.debug("Dropped %s spaces outside %sx%s", arena.dropped, rows, cols)
    return arena.to_spaces()


def create_lot(name: str, rows: int, cols: int, lot_id: Optional[LotId] = None) -> ParkingLot:
    if not (name or "").strip():
        raise ValidationError("Please enter a lot name.")
    validate_dimensions(rows, cols)
    return ParkingLot(
        id=lot_id,
        name=name.strip(),
        rows=rows,
        cols=cols,
        spaces=generate_default_spaces(rows, cols),
    )


def resize_lot(lot: ParkingLot, rows: int, cols: int) -> ParkingLot:
    """
    Change lot dimensions.

    Space types survive wherever their cell still exists; ids are reassigned.
    Merged aisles that no longer exist after a row shrink are dropped.
    """
    validate_dimensions(rows, cols)
    spaces = regenerate_spaces(lot.spaces, rows, cols)
    merged = frozenset(r for r in lot.merged_aisles if r < rows - 1)
    if merged != lot.merged_aisles:
        logger.info(
            "Dropped merged aisles %s from lot %s after resize to %s rows",
            sorted(lot.merged_aisles - merged), lot.id, rows,
        )
    logger.info("Resized lot %s from %sx%s to %sx%s", lot.id, lot.rows, lot.cols, rows, cols)
    return lot.model_copy(update={
        "rows": rows,
        "cols": cols,
        "spaces": spaces,
        "merged_aisles": merged,
    })


def find_space(lot: ParkingLot, space_id: int) -> Space:
    for space in lot.spaces:
        if space.id == space_id:
            return space
    raise InconsistentStateError(f"Space {space_id} is not registered in lot {lot.id}")


def update_space_type(lot: ParkingLot, space_id: int, space_type) -> ParkingLot:
    """Reclassify one space. Returns a new lot."""
    try:
        new_type = SpaceType(space_type)
    except ValueError:
        raise ValidationError(f"Unknown space type: {space_type!r}")

    target = find_space(lot, space_id)
    spaces = [
        space.model_copy(update={"type": new_type}) if space is target else space
        for space in lot.spaces
    ]
    return lot.model_copy(update={"spaces": spaces})


def check_registry(lot: ParkingLot) -> None:
    """
    Verify the spaces cover every cell of the grid exactly once.
    Raises InconsistentStateError describing each problem found.
    """
    problems: List[str] = []

    expected = lot.rows * lot.cols
    if len(lot.spaces) != expected:
        problems.append(f"{len(lot.spaces)} spaces for a {lot.rows}x{lot.cols} grid")

    cells = Counter((space.row, space.col) for space in lot.spaces)
    duplicated = sorted(cell for cell, count in cells.items() if count > 1)
    if duplicated:
        problems.append(f"duplicated cells {duplicated}")

    outside = sorted(cell for cell in cells if cell[0] >= lot.rows or cell[1] >= lot.cols)
    if outside:
        problems.append(f"cells outside the grid {outside}")

    missing = [
        (row, col)
        for row in range(lot.rows)
        for col in range(lot.cols)
        if (row, col) not in cells
    ]
    if missing:
        problems.append(f"missing cells {missing}")

    ids = Counter(space.id for space in lot.spaces)
    duplicate_ids = sorted(space_id for space_id, count in ids.items() if count > 1)
    if duplicate_ids:
        problems.append(f"duplicated ids {duplicate_ids}")

    if problems:
        raise InconsistentStateError(
            f"Space registry for lot {lot.id} is out of sync: " + "; ".join(problems)
        )
