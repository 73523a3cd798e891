"""Fractal height maps by successive refinement over icosahedral grids.

A small grid is filled with random heights, then each grid of double the
resolution takes every cell's height from the average of its parent cell
and three of its parent's neighbours, plus a random variation that shrinks
at each level.
"""

from __future__ import annotations

import numpy as np
import structlog

from icomap.grid import MAX_HEIGHT, Icosahedron
from icomap.rng import Dice

logger = structlog.get_logger(__name__)


def seed_heights(grid: Icosahedron, dice: Dice) -> None:
    """Give every cell a uniformly random height in 1..100."""

    grid.set_heights(dice.die_array(MAX_HEIGHT, grid.total_cells))


def _cell_coordinates(grid: Icosahedron) -> tuple[np.ndarray, np.ndarray]:
    topo = grid.topology
    ys = np.repeat(np.arange(grid.num_rows, dtype=np.int64), topo.row_widths)
    xs = np.arange(grid.total_cells, dtype=np.int64) - topo.row_offsets[ys]
    return xs, ys


def parent_indices(grid: Icosahedron, parent: Icosahedron, xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
    """Flat indices into `parent` of the cells covering (xs, ys) in `grid`.

    Columns may run one past either end of their row; they wrap in the parent.
    """

    divisor = grid.num_rows // parent.num_rows
    parent_ys = np.minimum(ys // divisor, parent.num_rows - 1)
    child_widths = grid.topology.row_widths[ys]
    parent_widths = parent.topology.row_widths[parent_ys]
    ratio = child_widths / parent_widths
    parent_xs = np.trunc(xs / ratio).astype(np.int64) % parent_widths
    return parent.topology.row_offsets[parent_ys] + parent_xs


def refine(grid: Icosahedron, parent: Icosahedron, variation: int, dice: Dice) -> None:
    """Fill `grid` with heights interpolated from the lower resolution `parent`."""

    if parent.num_rows >= grid.num_rows:
        raise ValueError("Parent map must be smaller than this map.")

    xs, ys = _cell_coordinates(grid)
    table = grid.neighbours()
    # up_down stays on the map for every cell; fall back to the cell itself regardless.
    across = np.where(table.up_down >= 0, table.up_down, np.arange(grid.total_cells))
    across_xs, across_ys = xs[across], ys[across]

    parent_heights = parent.heights().astype(np.int64)
    h0 = parent_heights[parent_indices(grid, parent, xs, ys)]
    h1 = parent_heights[parent_indices(grid, parent, across_xs, across_ys)]
    h2 = parent_heights[parent_indices(grid, parent, xs - 1, ys)]
    h3 = parent_heights[parent_indices(grid, parent, xs + 1, ys)]

    # Noise is drawn from -variation..+variation.
    heights = (h0 + h1 + h2 + h3) // 4 + dice.die_v_array(variation + 1, grid.total_cells)
    grid.set_heights(heights)
    logger.debug("refined height map", face_size=grid.face_size, parent_face_size=parent.face_size, variation=variation)


def generate_heights(final_size: int, variation: int, dice: Dice, *, start_size: int = 3) -> Icosahedron:
    """Build a height map of face size `final_size` by repeated doubling from `start_size`.

    `variation` is used for the first refinement and halved for each one after.
    """

    if start_size < 1:
        raise ValueError("start_size must be positive")
    size = start_size
    while size < final_size:
        size *= 2
    if size != final_size:
        raise ValueError(f"final_size {final_size} is not {start_size} times a power of two")

    parent = Icosahedron(start_size)
    seed_heights(parent, dice)

    while parent.face_size < final_size:
        grid = Icosahedron(parent.face_size * 2)
        refine(grid, parent, variation, dice)
        variation //= 2
        parent = grid

    logger.info("height map generated", face_size=parent.face_size, cells=parent.total_cells)
    return parent


def sea_level(grid: Icosahedron, percentage: int) -> int:
    """Height below which `percentage` of the surface lies.

    More generally, the height that covers the given share of cells when
    everything at or below it is flooded.
    """

    if not 0 <= percentage <= 100:
        raise ValueError("percentage must be in 0..100")

    histogram = np.bincount(grid.heights().astype(np.int64), minlength=MAX_HEIGHT + 1)
    to_cover = (grid.total_cells * percentage) // 100
    height = 0
    while to_cover > 0 and height < MAX_HEIGHT:
        to_cover -= int(histogram[height])
        height += 1
    return height
