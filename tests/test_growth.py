from __future__ import annotations

import pytest

from icomap.grid import Cell, Icosahedron
from icomap.growth import (
    CRATER_HEIGHT,
    RIFT_HEIGHT,
    add_rift,
    create_craters,
    flood,
    flood_to_percentage,
    grow_border,
    large_crater,
    medium_crater,
    small_crater,
)
from icomap.rng import Dice
from icomap.tile import Tile

WATER = Tile("Water", "#404070", is_water=True)
LAND = Tile("Land", "#8b8b88")
RIFT = Tile("Rift", "#504840")


def _land_grid(face_size: int) -> Icosahedron:
    return Icosahedron(face_size, fill=LAND)


def test_flood_zero_iterations_is_identity() -> None:
    grid = _land_grid(3)
    grid.set_tile(2, 4, WATER)
    before = grid.tiles_snapshot()

    flood(grid, WATER, 0, Dice.seeded(1))

    assert grid.tiles_snapshot() == before


def test_flood_spreads_at_most_one_cell_per_source() -> None:
    grid = _land_grid(6)
    grid.set_tile(10, 8, WATER)

    flood(grid, WATER, 1, Dice.seeded(4))
    assert grid.count(WATER) == 2

    flood(grid, WATER, 3, Dice.seeded(4))
    assert 2 <= grid.count(WATER) <= 16


def test_grow_border_rejects_bad_threshold() -> None:
    grid = _land_grid(3)

    for neighbours in (0, 4):
        with pytest.raises(ValueError):
            grow_border(grid, WATER, neighbours, 1)


def test_grow_border_zero_thickness_is_identity() -> None:
    grid = _land_grid(3)
    grid.set_tile(2, 4, WATER)
    before = grid.tiles_snapshot()

    grow_border(grid, WATER, 1, 0)

    assert grid.tiles_snapshot() == before


def test_grow_border_single_pass_reads_snapshot() -> None:
    grid = _land_grid(3)
    grid.set_tile(2, 4, WATER)

    grow_border(grid, WATER, 1, 1)

    assert grid.count(WATER) == 4
    for cell in (Cell(1, 4), Cell(2, 4), Cell(3, 4), Cell(3, 5)):
        assert grid.get_tile(*cell) == WATER


def test_grow_border_with_three_neighbours_fills_enclosed_cell() -> None:
    grid = _land_grid(3)
    for cell in (Cell(1, 4), Cell(3, 4), Cell(3, 5)):
        grid.set_tile(*cell, WATER)

    grow_border(grid, WATER, 3, 1)

    assert grid.get_tile(2, 4) == WATER
    assert grid.count(WATER) == 4


def test_flood_to_percentage_stops_just_past_target() -> None:
    grid = _land_grid(6)
    grid.set_tile(10, 8, WATER)
    required = grid.total_cells * 30 // 100

    count = flood_to_percentage(grid, WATER, 30, Dice.seeded(6))

    assert count == required + 1
    assert grid.count(WATER) == count


def test_flood_to_percentage_full_coverage_terminates() -> None:
    grid = _land_grid(3)
    grid.set_tile(0, 0, WATER)

    count = flood_to_percentage(grid, WATER, 100, Dice.seeded(2))

    assert count == grid.total_cells


def test_flood_to_percentage_with_heights() -> None:
    grid = _land_grid(6)
    grid.set_heights([100] * grid.total_cells)
    grid.set_tile(10, 8, WATER)

    count = flood_to_percentage(grid, WATER, 20, Dice.seeded(6), use_heights=True)

    assert count == grid.total_cells * 20 // 100 + 1


def test_flood_to_percentage_already_covered_is_noop() -> None:
    grid = Icosahedron(3, fill=WATER)

    assert flood_to_percentage(grid, WATER, 50, Dice.seeded(1)) == grid.total_cells


def test_flood_to_percentage_errors() -> None:
    grid = _land_grid(3)

    with pytest.raises(ValueError):
        flood_to_percentage(grid, WATER, 30, Dice.seeded(1))

    grid.set_tile(0, 4, WATER)
    with pytest.raises(ValueError):
        flood_to_percentage(grid, WATER, 101, Dice.seeded(1))


def test_shaded_tiles_still_flood() -> None:
    grid = _land_grid(3)
    grid.set_tile(5, 4, WATER.shaded(60))

    flood(grid, WATER, 1, Dice.seeded(3))

    assert grid.count(WATER) == 2


def test_small_crater_only_shades_once() -> None:
    grid = _land_grid(3)

    small_crater(grid, 4, 4)
    first = grid.get_tile(4, 4)
    small_crater(grid, 4, 4)

    assert grid.get_height(4, 4) == CRATER_HEIGHT
    assert first == LAND
    assert first.rgb != LAND.rgb
    assert grid.get_tile(4, 4).rgb == first.rgb


def test_medium_crater_covers_two_rows() -> None:
    grid = _land_grid(3)

    medium_crater(grid, 2, 4)

    cratered = [cell for cell in grid.cells() if grid.get_height(*cell) == CRATER_HEIGHT]
    assert sorted(cratered) == sorted(
        [Cell(1, 4), Cell(2, 4), Cell(3, 4), Cell(0, 3), Cell(1, 3), Cell(2, 3)]
    )


def test_large_crater_covers_four_rows() -> None:
    grid = _land_grid(6)

    large_crater(grid, 20, 9)

    cratered = [cell for cell in grid.cells() if grid.get_height(*cell) == CRATER_HEIGHT]
    expected = {7: range(16, 21), 8: range(16, 23), 9: range(17, 24), 10: range(19, 24)}
    assert len(cratered) == 24
    assert sorted(cratered) == sorted(Cell(x, y) for y, xs in expected.items() for x in xs)


@pytest.mark.parametrize("row", [0, 17])
def test_large_crater_at_pole_sinks_only_centre_row(row: int) -> None:
    grid = _land_grid(6)

    large_crater(grid, 2, row)

    cratered = [cell for cell in grid.cells() if grid.get_height(*cell) == CRATER_HEIGHT]
    assert sorted(cratered) == [Cell(x, row) for x in range(grid.row_width(row))]


def test_craters_leave_water_alone() -> None:
    grid = Icosahedron(12, fill=WATER)
    before = grid.heights()

    create_craters(grid, Dice.seeded(5), 5, 10)

    assert (grid.heights() == before).all()
    assert all(t.rgb == WATER.rgb for t in grid.tiles_snapshot())


def test_create_craters_sinks_land() -> None:
    grid = _land_grid(12)

    create_craters(grid, Dice.seeded(5), 2, 6)

    sunk = [cell for cell in grid.cells() if grid.get_height(*cell) == CRATER_HEIGHT]
    assert len(sunk) >= 6
    for cell in sunk:
        assert grid.get_tile(*cell) == LAND
        assert grid.get_tile(*cell).rgb == LAND.shaded(85).rgb
        assert grid.num_rows // 5 - 2 <= cell.y <= grid.num_rows * 4 // 5 + 2


def test_add_rift_marks_cells() -> None:
    grid = _land_grid(12)

    add_rift(grid, Dice.seeded(9), RIFT, 12)

    rifts = [cell for cell in grid.cells() if grid.get_tile(*cell) == RIFT]
    assert 1 <= len(rifts) <= 12
    assert all(grid.get_height(*cell) == RIFT_HEIGHT for cell in rifts)
