"""Icosahedral world grid: topology, cell state and neighbour navigation.

The surface of a body is unfolded into 20 large triangular faces: five
around the north pole, ten around the equator and five around the south
pole. Each face is split into `face_size` rows of small triangles, so the
map has `face_size * 3` rows. Row widths grow through the northern cap,
stay constant across the equatorial band and shrink through the southern
cap, always in multiples of the five gores.

Cell state lives in flat buffers indexed by `row_offset(y) + x`. Coordinates
passed to accessors are normalised loosely: rows are clamped to the map and
columns wrap around the row, so the map wraps east/west but not over the
poles.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Iterator, NamedTuple

import numpy as np

from icomap.tile import DEFAULT_TILE, Tile

FACES = 5
MIN_HEIGHT = 1
MAX_HEIGHT = 100
DEFAULT_HEIGHT = 50


class Cell(NamedTuple):
    """Grid coordinate: column `x` within row `y`."""

    x: int
    y: int


@dataclass(frozen=True, eq=False)
class GridTopology:
    """Row widths, global x positions and orientations for one face size."""

    face_size: int
    row_widths: np.ndarray
    row_offsets: np.ndarray
    global_x: np.ndarray
    orientation: np.ndarray

    @property
    def num_rows(self) -> int:
        return self.face_size * 3

    @property
    def total_cells(self) -> int:
        return int(self.row_offsets[-1])

    @property
    def max_global_x(self) -> int:
        """Largest global x position of the last cell of any row."""

        last = self.row_offsets[1:] - 1
        return int(self.global_x[last].max())


@lru_cache(maxsize=4)
def build_topology(face_size: int) -> GridTopology:
    """Compute the immutable topology tables for `face_size`."""

    widths: list[int] = []
    w = 1
    for _ in range(face_size):
        widths.append(w * FACES)
        w += 2
    for _ in range(face_size):
        widths.append(face_size * 2 * FACES)
    for _ in range(face_size):
        w -= 2
        widths.append(w * FACES)

    offsets = np.zeros(len(widths) + 1, dtype=np.int64)
    offsets[1:] = np.cumsum(widths)

    global_x = np.zeros(int(offsets[-1]), dtype=np.int64)
    orientation = np.zeros(int(offsets[-1]), dtype=np.int8)

    # -1: the point is at the top (base below); +1: the point is at the bottom.
    for row, width in enumerate(widths):
        per_face = width // FACES
        column = int(offsets[row])
        for face in range(FACES):
            if row < face_size * 2:
                direction = -1
                start_x = (face + 1) * face_size * 2 - row
            else:
                direction = 1
                start_x = (face + 1) * face_size * 2 + (row - face_size * 3) - face_size + 1
            for i in range(per_face):
                global_x[column] = start_x + i
                orientation[column] = direction
                direction = -direction
                column += 1

    row_widths = np.asarray(widths, dtype=np.int64)
    for array in (row_widths, offsets, global_x, orientation):
        array.setflags(write=False)

    return GridTopology(
        face_size=face_size,
        row_widths=row_widths,
        row_offsets=offsets,
        global_x=global_x,
        orientation=orientation,
    )


class Icosahedron:
    """A world map at one resolution, with a tile and a height for every cell."""

    def __init__(self, face_size: int, *, fill: Tile = DEFAULT_TILE) -> None:
        if isinstance(face_size, bool) or not isinstance(face_size, (int, np.integer)):
            raise ValueError(f"face_size must be an integer, got {face_size!r}")
        if face_size < 1:
            raise ValueError(f"face_size must be positive, got {face_size}")
        if not isinstance(fill, Tile):
            raise TypeError("fill must be a Tile")

        self._topology = build_topology(int(face_size))
        self._tiles: list[Tile] = [fill] * self._topology.total_cells
        self._heights = np.full(self._topology.total_cells, DEFAULT_HEIGHT, dtype=np.int16)

    def __repr__(self) -> str:
        return f"Icosahedron(face_size={self.face_size})"

    @property
    def topology(self) -> GridTopology:
        return self._topology

    @property
    def face_size(self) -> int:
        return self._topology.face_size

    @property
    def num_rows(self) -> int:
        return self._topology.num_rows

    @property
    def total_cells(self) -> int:
        return self._topology.total_cells

    def row_width(self, y: int) -> int:
        """Number of cells in row `y`. Unlike the cell accessors, `y` is not clamped."""

        if y < 0 or y >= self.num_rows:
            raise IndexError(f"row {y} is outside bounds 0 - {self.num_rows - 1}")
        return int(self._topology.row_widths[y])

    def row_offset(self, y: int) -> int:
        """Flat buffer index of the first cell in row `y`."""

        self.row_width(y)
        return int(self._topology.row_offsets[y])

    def normalize(self, x: int, y: int) -> Cell:
        """Clamp `y` to the map and wrap `x` around its row."""

        y = min(max(int(y), 0), self.num_rows - 1)
        return Cell(int(x) % int(self._topology.row_widths[y]), y)

    def contains(self, x: int, y: int) -> bool:
        return 0 <= y < self.num_rows and 0 <= x < int(self._topology.row_widths[y])

    def index(self, x: int, y: int) -> int:
        x, y = self.normalize(x, y)
        return int(self._topology.row_offsets[y]) + x

    def cells(self) -> Iterator[Cell]:
        for y in range(self.num_rows):
            for x in range(int(self._topology.row_widths[y])):
                yield Cell(x, y)

    # Cell state.

    def get_tile(self, x: int, y: int) -> Tile:
        return self._tiles[self.index(x, y)]

    def set_tile(self, x: int, y: int, tile: Tile) -> None:
        if tile is None:
            raise ValueError("Cannot set tile to be None")
        if not isinstance(tile, Tile):
            raise TypeError(f"expected a Tile, got {type(tile).__name__}")
        self._tiles[self.index(x, y)] = tile

    def get_height(self, x: int, y: int) -> int:
        return int(self._heights[self.index(x, y)])

    def set_height(self, x: int, y: int, height: int) -> None:
        """Set the height of a cell, capped to 1..100."""

        self._heights[self.index(x, y)] = min(max(int(height), MIN_HEIGHT), MAX_HEIGHT)

    def heights(self) -> np.ndarray:
        """Copy of the flat height buffer, in row-major cell order."""

        return self._heights.copy()

    def tiles_snapshot(self) -> tuple[Tile, ...]:
        """Immutable copy of the tile buffer, in row-major cell order."""

        return tuple(self._tiles)

    def count(self, tile: Tile) -> int:
        return sum(1 for t in self._tiles if t == tile)

    def copy_heights_from(self, source: "Icosahedron") -> None:
        if source.num_rows != self.num_rows:
            raise ValueError("Source must be the same size.")
        self._heights[:] = source._heights

    def set_heights(self, heights: np.ndarray) -> None:
        """Replace every height from a flat array, capping values to 1..100."""

        values = np.asarray(heights)
        if values.shape != self._heights.shape:
            raise ValueError(f"expected {self._heights.shape[0]} heights, got shape {values.shape}")
        self._heights[:] = np.clip(values, MIN_HEIGHT, MAX_HEIGHT)

    # Flat-index access, for passes that walk the whole buffer.

    def cell_of(self, index: int) -> Cell:
        y = int(np.searchsorted(self._topology.row_offsets, index, side="right")) - 1
        return Cell(index - int(self._topology.row_offsets[y]), y)

    def get_tile_at(self, index: int) -> Tile:
        return self._tiles[index]

    def set_tile_at(self, index: int, tile: Tile) -> None:
        if tile is None:
            raise ValueError("Cannot set tile to be None")
        self._tiles[index] = tile

    def get_height_at(self, index: int) -> int:
        return int(self._heights[index])

    def neighbours(self) -> "NeighbourTable":
        return build_neighbours(self.face_size)

    # Topology queries.

    def orientation(self, x: int, y: int) -> int:
        """-1 if the cell points up (towards the north), +1 if it points down."""

        return int(self._topology.orientation[self.index(x, y)])

    def global_x(self, x: int, y: int) -> int:
        return int(self._topology.global_x[self.index(x, y)])

    def latitude(self, y: int) -> int:
        """Distance from the equator in degrees, 0..90, for either hemisphere."""

        rows = self.num_rows
        if y < rows / 2:
            return int(90 * (1 - (2.0 * y) / rows))
        return int(90 * (1 - (2.0 * (rows - y)) / rows))

    # Neighbour navigation.

    def west(self, x: int, y: int) -> int:
        x, y = self.normalize(x, y)
        return (x - 1) % self.row_width(y)

    def east(self, x: int, y: int) -> int:
        x, y = self.normalize(x, y)
        return (x + 1) % self.row_width(y)

    def up_down(self, x: int, y: int) -> Cell | None:
        """Neighbour across the flat side of the triangle at (x, y).

        This is one row closer to the north for cells that point down and one
        row closer to the south for cells that point up. Returns None if the
        computed neighbour falls outside the map.
        """

        return self._vertical_step(x, y, towards_base=True)

    def opposite(self, x: int, y: int) -> Cell | None:
        """Cell one row away in the direction the triangle points, or None off the map."""

        return self._vertical_step(x, y, towards_base=False)

    def _vertical_step(self, x: int, y: int, *, towards_base: bool) -> Cell | None:
        x, y = self.normalize(x, y)
        face_size = self.face_size
        direction = int(self._topology.orientation[int(self._topology.row_offsets[y]) + x])
        sign = 1 if towards_base else -1
        new_y = y - direction * sign

        if new_y < 0 or new_y >= self.num_rows:
            return None

        new_x = x
        if y >= face_size * 2 or y < face_size:
            # Polar caps: rescale by the per-gore width change between the rows.
            org_width = self.row_width(y) // FACES
            new_width = self.row_width(new_y) // FACES
            gore = x // org_width
            delta = org_width - new_width
            new_x -= delta * gore
            # Truncate toward zero so the two cells at a point share a neighbour.
            new_x -= int(delta / 2)
        elif y == face_size and new_y == face_size - 1:
            new_x -= x // (face_size * 2) + 1
        elif y == face_size * 2 - 1 and new_y == face_size * 2:
            new_x -= sign * (x // (face_size * 2))
        else:
            new_x -= sign * direction

        if not self.contains(new_x, new_y):
            return None
        return Cell(new_x, new_y)


@dataclass(frozen=True, eq=False)
class NeighbourTable:
    """Flat-index neighbours of every cell. Missing neighbours are -1."""

    west: np.ndarray
    east: np.ndarray
    up_down: np.ndarray
    opposite: np.ndarray


@lru_cache(maxsize=4)
def build_neighbours(face_size: int) -> NeighbourTable:
    """Tabulate west/east/up_down/opposite for every cell of a `face_size` grid."""

    grid = Icosahedron(face_size)
    total = grid.total_cells
    tables = {name: np.full(total, -1, dtype=np.int64) for name in ("west", "east", "up_down", "opposite")}

    for index, (x, y) in enumerate(grid.cells()):
        tables["west"][index] = grid.index(grid.west(x, y), y)
        tables["east"][index] = grid.index(grid.east(x, y), y)
        for name, step in (("up_down", grid.up_down), ("opposite", grid.opposite)):
            cell = step(x, y)
            if cell is not None:
                tables[name][index] = grid.index(cell.x, cell.y)

    for array in tables.values():
        array.setflags(write=False)
    return NeighbourTable(**tables)
