"""
Lot Geometry Service.
Maps lot dimensions and merged aisles to plan coordinates.
"""
import logging
from dataclasses import dataclass
from typing import FrozenSet, List, Optional, Union

from app.core.constants import SPACE_WIDTH, SPACE_DEPTH, AISLE_WIDTH, MERGED_AISLE_WIDTH
from app.core.errors import ValidationError
from app.schemas.parking import ParkingLot, SpacePlacement, LotLayoutResponse

logger = logging.getLogger(__name__)


def validate_dimensions(rows, cols) -> None:
    """Reject non-integer or non-positive lot dimensions."""
    for label, value in (("rows", rows), ("cols", cols)):
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise ValidationError(f"{label} must be a positive integer, got {value!r}")


@dataclass(frozen=True)
class LotGeometry:
    """
    Plan geometry of a rectangular lot.

    Rows stack along y with an aisle after every row except the last.
    A merged aisle collapses to MERGED_AISLE_WIDTH, modelling two rows
    parked nose to nose with no drive lane between them.
    """

    rows: int
    cols: int
    merged_aisles: FrozenSet[int] = frozenset()

    def __post_init__(self):
        validate_dimensions(self.rows, self.cols)

    @classmethod
    def for_lot(cls, lot: ParkingLot) -> "LotGeometry":
        return cls(rows=lot.rows, cols=lot.cols, merged_aisles=frozenset(lot.merged_aisles))

    def aisle_width_after_row(self, row: int) -> float:
        """Width of the aisle between `row` and `row + 1`."""
        if row < 0 or row >= self.rows - 1:
            raise ValidationError(
                f"No aisle after row {row} in a lot with {self.rows} rows"
            )
        return MERGED_AISLE_WIDTH if row in self.merged_aisles else AISLE_WIDTH

    def lot_height(self) -> float:
        height = self.rows * SPACE_DEPTH
        for row in range(self.rows - 1):
            height += self.aisle_width_after_row(row)
        return height

    def lot_width(self) -> float:
        return self.cols * SPACE_WIDTH

    def row_y_position(self, row: int) -> float:
        """Top edge of `row`, counting every row and aisle above it."""
        if row < 0 or row >= self.rows:
            raise ValidationError(f"Row {row} is outside 0..{self.rows - 1}")
        y = 0.0
        for r in range(row):
            y += SPACE_DEPTH + self.aisle_width_after_row(r)
        return y

    def space_x_position(self, col: int) -> float:
        if col < 0 or col >= self.cols:
            raise ValidationError(f"Column {col} is outside 0..{self.cols - 1}")
        return col * SPACE_WIDTH


def build_layout(lot: ParkingLot) -> LotLayoutResponse:
    """Project every space of a lot onto the plan."""
    geometry = LotGeometry.for_lot(lot)
    row_offsets = [geometry.row_y_position(row) for row in range(lot.rows)]

    placements: List[SpacePlacement] = []
    for space in lot.spaces:
        if space.row >= lot.rows or space.col >= lot.cols:
            # Stale cell from before a shrink; skip rather than place off-plan
            logger.warning(
                "Space %s at (%s, %s) is outside lot %s (%sx%s)",
                space.id, space.row, space.col, lot.id, lot.rows, lot.cols,
            )
            continue
        placements.append(SpacePlacement(
            space_id=space.id,
            row=space.row,
            col=space.col,
            type=space.type,
            x=geometry.space_x_position(space.col),
            y=row_offsets[space.row],
            width=SPACE_WIDTH,
            depth=SPACE_DEPTH,
        ))

    return LotLayoutResponse(
        lot_id=lot.id,
        rows=lot.rows,
        cols=lot.cols,
        width=geometry.lot_width(),
        height=geometry.lot_height(),
        merged_aisles=sorted(lot.merged_aisles),
        spaces=placements,
    )


# -------------------------
# Row merging
# -------------------------

def parse_row_index(value: Optional[Union[int, str]]) -> int:
    """Parse a row number typed into a form."""
    if isinstance(value, bool):
        raise ValidationError("Please enter valid row numbers.")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise ValidationError("Please enter valid row numbers.")


def merge_rows(lot: ParkingLot, row_a, row_b) -> ParkingLot:
    """
    Merge two adjacent rows by collapsing the aisle between them.
    Returns a new lot; the input lot is never modified.
    """
    r1 = parse_row_index(row_a)
    r2 = parse_row_index(row_b)

    if not (0 <= r1 < lot.rows and 0 <= r2 < lot.rows):
        raise ValidationError(f"Row numbers must be between 0 and {lot.rows - 1}.")
    if abs(r1 - r2) != 1:
        raise ValidationError("Rows must be adjacent to merge.")

    aisle = min(r1, r2)
    if aisle in lot.merged_aisles:
        logger.debug("Aisle after row %s already merged in lot %s", aisle, lot.id)
        return lot

    logger.info("Merged rows %s and %s in lot %s", r1, r2, lot.id)
    return lot.model_copy(update={"merged_aisles": lot.merged_aisles | {aisle}})


def reset_merges(lot: ParkingLot) -> ParkingLot:
    """Restore the standard aisle after every row."""
    if lot.merged_aisles:
        logger.info("Reset %s merged aisles in lot %s", len(lot.merged_aisles), lot.id)
    return lot.model_copy(update={"merged_aisles": frozenset()})
