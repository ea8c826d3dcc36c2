from itertools import combinations

import pytest
from pydantic import ValidationError as SchemaValidationError

from app.core.constants import SPACE_DEPTH, SPACE_WIDTH, AISLE_WIDTH, MERGED_AISLE_WIDTH
from app.core.errors import ValidationError
from app.schemas.parking import ParkingLot, SpaceType
from app.services.lot_geometry import LotGeometry, build_layout, merge_rows, reset_merges
from app.services.space_registry import create_lot


@pytest.fixture
def four_row_lot():
    return create_lot("North", rows=4, cols=3, lot_id=1)


def test_unmerged_height_and_width():
    geometry = LotGeometry(rows=4, cols=10)
    assert geometry.lot_height() == pytest.approx(4 * SPACE_DEPTH + 3 * AISLE_WIDTH)
    assert geometry.lot_width() == pytest.approx(10 * SPACE_WIDTH)


def test_single_row_has_no_aisle():
    geometry = LotGeometry(rows=1, cols=2)
    assert geometry.lot_height() == pytest.approx(SPACE_DEPTH)
    with pytest.raises(ValidationError):
        geometry.aisle_width_after_row(0)


def test_height_is_rows_plus_aisles_for_every_merge_subset():
    for rows in range(1, 6):
        aisles = range(rows - 1)
        for size in range(rows):
            for merged in combinations(aisles, size):
                geometry = LotGeometry(rows=rows, cols=3, merged_aisles=frozenset(merged))
                expected = rows * SPACE_DEPTH + sum(
                    geometry.aisle_width_after_row(r) for r in range(rows - 1)
                )
                assert geometry.lot_height() == pytest.approx(expected)


def test_merging_an_aisle_lowers_height():
    base = LotGeometry(rows=3, cols=2)
    merged = LotGeometry(rows=3, cols=2, merged_aisles=frozenset({1}))
    assert merged.lot_height() < base.lot_height()
    assert merged.aisle_width_after_row(1) == MERGED_AISLE_WIDTH
    assert merged.aisle_width_after_row(0) == AISLE_WIDTH


def test_height_grows_with_rows():
    heights = [LotGeometry(rows=r, cols=1).lot_height() for r in range(1, 8)]
    assert heights == sorted(heights)
    assert len(set(heights)) == len(heights)


def test_aisle_after_last_row_is_rejected():
    with pytest.raises(ValidationError):
        LotGeometry(rows=4, cols=1).aisle_width_after_row(3)


def test_row_positions_account_for_merged_aisles():
    geometry = LotGeometry(rows=3, cols=2, merged_aisles=frozenset({0}))
    assert geometry.row_y_position(0) == 0
    assert geometry.row_y_position(1) == pytest.approx(SPACE_DEPTH + MERGED_AISLE_WIDTH)
    assert geometry.row_y_position(2) == pytest.approx(
        2 * SPACE_DEPTH + MERGED_AISLE_WIDTH + AISLE_WIDTH
    )


def test_space_x_position():
    geometry = LotGeometry(rows=1, cols=4)
    assert [geometry.space_x_position(c) for c in range(4)] == [0, 2.5, 5.0, 7.5]
    with pytest.raises(ValidationError):
        geometry.space_x_position(4)


def test_invalid_dimensions():
    with pytest.raises(ValidationError):
        LotGeometry(rows=0, cols=3)
    with pytest.raises(ValidationError):
        LotGeometry(rows=2, cols=-1)


def test_merge_adjacent_rows_records_lower_index(four_row_lot):
    merged = merge_rows(four_row_lot, 2, 3)
    assert merged.merged_aisles == {2}
    assert four_row_lot.merged_aisles == frozenset()


def test_merge_accepts_rows_in_either_order_and_as_text(four_row_lot):
    assert merge_rows(four_row_lot, "1", " 0 ").merged_aisles == {0}


def test_merge_is_idempotent(four_row_lot):
    once = merge_rows(four_row_lot, 2, 3)
    twice = merge_rows(once, 3, 2)
    assert twice.merged_aisles == {2}


@pytest.mark.parametrize("row_a,row_b,message", [
    (1, 3, "adjacent"),
    (0, 5, "between 0 and 3"),
    (-1, 0, "between 0 and 3"),
    (2, 2, "adjacent"),
    ("abc", 1, "valid row numbers"),
    (None, 1, "valid row numbers"),
])
def test_merge_rejections_leave_lot_unchanged(four_row_lot, row_a, row_b, message):
    lot = merge_rows(four_row_lot, 0, 1)
    with pytest.raises(ValidationError, match=message):
        merge_rows(lot, row_a, row_b)
    assert lot.merged_aisles == {0}


def test_reset_restores_baseline_height(four_row_lot):
    baseline = LotGeometry.for_lot(four_row_lot).lot_height()
    lot = merge_rows(merge_rows(four_row_lot, 0, 1), 2, 3)
    assert LotGeometry.for_lot(lot).lot_height() < baseline

    reset = reset_merges(lot)
    assert reset.merged_aisles == frozenset()
    assert LotGeometry.for_lot(reset).lot_height() == pytest.approx(baseline)


def test_lot_rejects_aisles_that_do_not_exist():
    with pytest.raises(SchemaValidationError):
        ParkingLot(id=1, name="A", rows=4, cols=2, merged_aisles=[3])


def test_lot_decodes_serialized_arrays():
    lot = ParkingLot(
        id=1,
        name="A",
        rows=2,
        cols=1,
        spaces='[{"id": 1, "row": 0, "col": 0, "type": "visitor"}, '
               '{"id": 2, "row": 1, "col": 0, "type": "regular"}]',
        merged_aisles="[0]",
    )
    assert lot.merged_aisles == {0}
    assert lot.spaces[0].type.value == "visitor"
    assert lot.model_dump()["merged_aisles"] == [0]


def test_lot_decodes_legacy_authorized_label():
    lot = ParkingLot(
        id=1,
        name="A",
        rows=1,
        cols=2,
        spaces='[{"id": 1, "row": 0, "col": 0, "type": "authorized personnel"}, '
               '{"id": 2, "row": 0, "col": 1, "type": "Visitor"}]',
    )
    assert [s.type for s in lot.spaces] == [SpaceType.AUTHORIZED, SpaceType.VISITOR]
    assert lot.model_dump(mode="json")["spaces"][0]["type"] == "authorized"


def test_build_layout_places_every_space():
    lot = merge_rows(create_lot("B", rows=2, cols=2, lot_id=7), 0, 1)
    layout = build_layout(lot)

    assert layout.width == pytest.approx(2 * SPACE_WIDTH)
    assert layout.height == pytest.approx(2 * SPACE_DEPTH + MERGED_AISLE_WIDTH)
    assert layout.merged_aisles == [0]
    assert [(p.space_id, p.x, p.y) for p in layout.spaces] == [
        (1, 0.0, 0.0),
        (2, 2.5, 0.0),
        (3, 0.0, pytest.approx(SPACE_DEPTH + MERGED_AISLE_WIDTH)),
        (4, 2.5, pytest.approx(SPACE_DEPTH + MERGED_AISLE_WIDTH)),
    ]
