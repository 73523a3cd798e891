from __future__ import annotations

import numpy as np
import pytest

from icomap.grid import Cell, Icosahedron, build_neighbours, build_topology
from icomap.tile import Tile

WATER = Tile("Water", "#404070", is_water=True)


def test_row_widths_face_size_three() -> None:
    grid = Icosahedron(3)

    widths = [grid.row_width(y) for y in range(grid.num_rows)]
    assert grid.num_rows == 9
    assert widths == [5, 15, 25, 30, 30, 30, 25, 15, 5]
    assert grid.total_cells == sum(widths) == 180


@pytest.mark.parametrize("face_size", [1, 2, 3, 6, 12])
def test_row_widths_are_symmetric_multiples_of_five(face_size: int) -> None:
    grid = Icosahedron(face_size)
    widths = [grid.row_width(y) for y in range(grid.num_rows)]

    assert all(w % 5 == 0 for w in widths)
    assert widths == widths[::-1]
    assert widths[0] == 5
    assert max(widths) == 10 * face_size


@pytest.mark.parametrize("face_size", [0, -3, 1.5, "3", True])
def test_invalid_face_size_rejected(face_size) -> None:
    with pytest.raises(ValueError):
        Icosahedron(face_size)


def test_row_width_out_of_range() -> None:
    grid = Icosahedron(3)

    with pytest.raises(IndexError):
        grid.row_width(-1)
    with pytest.raises(IndexError):
        grid.row_width(grid.num_rows)


def test_loose_coordinates_clamp_rows_and_wrap_columns() -> None:
    grid = Icosahedron(3)

    grid.set_tile(7, -3, WATER)
    assert grid.get_tile(2, 0) == WATER
    assert grid.get_tile(-3, 0) == WATER

    grid.set_height(31, 40, 80)
    assert grid.get_height(1, 8) == 80
    assert grid.normalize(-1, 4) == Cell(29, 4)


def test_set_tile_rejects_none_and_non_tiles() -> None:
    grid = Icosahedron(3)

    with pytest.raises(ValueError):
        grid.set_tile(0, 0, None)
    with pytest.raises(TypeError):
        grid.set_tile(0, 0, "Water")


def test_heights_are_capped() -> None:
    grid = Icosahedron(3)

    grid.set_height(0, 0, 500)
    grid.set_height(1, 1, -3)
    assert grid.get_height(0, 0) == 100
    assert grid.get_height(1, 1) == 1

    grid.set_heights(np.arange(grid.total_cells))
    heights = grid.heights()
    assert heights.min() == 1
    assert heights.max() == 100


def test_copy_heights_requires_same_size() -> None:
    small = Icosahedron(3)
    other = Icosahedron(3)
    other.set_height(4, 4, 77)

    small.copy_heights_from(other)
    assert small.get_height(4, 4) == 77

    with pytest.raises(ValueError):
        small.copy_heights_from(Icosahedron(6))


def test_flat_index_round_trip() -> None:
    grid = Icosahedron(4)

    for index, cell in enumerate(grid.cells()):
        assert grid.index(*cell) == index
        assert grid.cell_of(index) == cell


def test_west_east_are_inverse() -> None:
    grid = Icosahedron(6)

    for x, y in grid.cells():
        assert grid.east(grid.west(x, y), y) == x
        assert grid.west(grid.east(x, y), y) == x

    assert grid.west(0, 0) == 4
    assert grid.east(4, 0) == 0


@pytest.mark.parametrize("face_size", [2, 3, 4, 6])
def test_up_down_stays_on_map(face_size: int) -> None:
    grid = Icosahedron(face_size)

    for x, y in grid.cells():
        cell = grid.up_down(x, y)
        assert cell is not None
        assert grid.contains(*cell)
        assert abs(cell.y - y) == 1


@pytest.mark.parametrize("face_size", [2, 3, 4, 6])
def test_up_down_is_involution_away_from_north_seam(face_size: int) -> None:
    grid = Icosahedron(face_size)

    for x, y in grid.cells():
        if y in (face_size - 1, face_size):
            continue
        cell = grid.up_down(x, y)
        assert grid.up_down(*cell) == Cell(x, y)


def test_up_down_across_north_seam() -> None:
    grid = Icosahedron(3)

    assert grid.up_down(1, 3) == Cell(0, 2)
    assert grid.up_down(0, 2) == Cell(0, 3)


def test_up_down_direction_follows_orientation() -> None:
    grid = Icosahedron(3)

    # Every polar triangle points away from the equator.
    assert all(grid.orientation(x, 0) == -1 for x in range(grid.row_width(0)))
    assert all(grid.orientation(x, 8) == 1 for x in range(grid.row_width(8)))
    assert grid.up_down(0, 0) == Cell(1, 1)
    assert grid.up_down(1, 1) == Cell(0, 0)
    assert grid.up_down(2, 4) == Cell(3, 5)
    assert grid.up_down(3, 5) == Cell(2, 4)


def test_opposite_is_none_at_poles() -> None:
    grid = Icosahedron(3)

    for x in range(grid.row_width(0)):
        assert grid.opposite(x, 0) is None
    for x in range(grid.row_width(grid.num_rows - 1)):
        assert grid.opposite(x, grid.num_rows - 1) is None


def test_opposite_in_equatorial_band() -> None:
    grid = Icosahedron(3)

    assert grid.opposite(2, 4) == Cell(1, 3)
    for x in range(1, grid.row_width(4) - 1):
        d = grid.orientation(x, 4)
        assert grid.opposite(x, 4) == Cell(x + d, 4 + d)


def test_opposite_moves_against_up_down() -> None:
    grid = Icosahedron(6)

    for x, y in grid.cells():
        far = grid.opposite(x, y)
        if far is None:
            continue
        assert grid.contains(*far)
        assert far.y - y == -(grid.up_down(x, y).y - y)


def test_neighbour_table_matches_navigation() -> None:
    grid = Icosahedron(3)
    table = build_neighbours(3)

    for index, (x, y) in enumerate(grid.cells()):
        assert table.west[index] == grid.index(grid.west(x, y), y)
        assert table.east[index] == grid.index(grid.east(x, y), y)
        assert table.up_down[index] == grid.index(*grid.up_down(x, y))
        far = grid.opposite(x, y)
        assert table.opposite[index] == (-1 if far is None else grid.index(*far))

    with pytest.raises(ValueError):
        table.west[0] = 1


def test_latitude_is_symmetric() -> None:
    grid = Icosahedron(3)

    assert grid.latitude(0) == 90
    for y in range(1, 5):
        assert grid.latitude(y) == grid.latitude(grid.num_rows - y)
        assert grid.latitude(y) < grid.latitude(y - 1)


def test_count_matches_by_name() -> None:
    grid = Icosahedron(3)
    grid.set_tile(0, 0, WATER)
    grid.set_tile(1, 1, WATER.shaded(50))

    assert grid.count(WATER) == 2


def test_topology_caches_are_bounded() -> None:
    for face_size in (3, 6, 12, 24, 48):
        Icosahedron(face_size).neighbours()

    for cached in (build_topology, build_neighbours):
        info = cached.cache_info()
        assert info.maxsize == 4
        assert info.currsize <= 4
