"""Cellular growth of terrain across the grid: floods, borders, craters and rifts.

Every pass reads from a snapshot of the tiles taken when the pass starts and
writes to the live grid, so a cell converted during a pass does not itself
spread until the next pass. Neighbours that fall off the map are skipped.
"""

from __future__ import annotations

import structlog

from icomap.grid import Cell, Icosahedron, NeighbourTable
from icomap.rng import Dice
from icomap.tile import Tile

logger = structlog.get_logger(__name__)

CRATER_HEIGHT = 10
CRATER_SHADE = 85
RIFT_HEIGHT = 10

# Order matters: a d3 roll of 1, 2 or 3 picks west, east or across.
_DIRECTIONS = ("west", "east", "up_down")


def _neighbour(table: NeighbourTable, index: int, direction: str) -> int | None:
    target = int(getattr(table, direction)[index])
    return target if target >= 0 else None


def _skipped(grid: Icosahedron, operation: str, cell: Cell) -> None:
    logger.debug("neighbour off map, skipped", operation=operation, x=cell.x, y=cell.y, face_size=grid.face_size)


def flood(grid: Icosahedron, tile: Tile, iterations: int, dice: Dice) -> None:
    """Spread `tile` by having every cell of that type convert one random neighbour, `iterations` times."""

    table = grid.neighbours()
    for iteration in range(iterations):
        snapshot = grid.tiles_snapshot()
        for index, current in enumerate(snapshot):
            if current != tile:
                continue
            target = _neighbour(table, index, _DIRECTIONS[dice.d3() - 1])
            if target is None:
                _skipped(grid, "flood", grid.cell_of(index))
                continue
            grid.set_tile_at(target, tile)
        logger.debug("flood pass", tile=tile.name, iteration=iteration, count=grid.count(tile))


def grow_border(grid: Icosahedron, tile: Tile, neighbours: int, thickness: int) -> None:
    """Convert cells with at least `neighbours` (1-3) neighbours of type `tile`, `thickness` times.

    Unlike `flood` this is deterministic and follows the existing outline.
    """

    if neighbours < 1 or neighbours > 3:
        raise ValueError("Number of neighbours must be between 1 and 3")

    table = grid.neighbours()
    for _ in range(thickness):
        snapshot = grid.tiles_snapshot()
        converted = 0
        for index, current in enumerate(snapshot):
            if current == tile:
                continue
            matches = 0
            for direction in _DIRECTIONS:
                target = _neighbour(table, index, direction)
                if target is None:
                    _skipped(grid, "grow_border", grid.cell_of(index))
                    continue
                if snapshot[target] == tile:
                    matches += 1
            if matches >= neighbours:
                grid.set_tile_at(index, tile)
                converted += 1
        logger.debug("border pass", tile=tile.name, converted=converted)


def flood_to_percentage(
    grid: Icosahedron,
    tile: Tile,
    percentage: int,
    dice: Dice,
    *,
    use_heights: bool = False,
) -> int:
    """Flood `tile` until it covers more than `percentage` of the surface.

    With `use_heights`, each spread only succeeds if a d100 roll is at most
    the destination's height. Returns the final number of `tile` cells.
    """

    if not 0 <= percentage <= 100:
        raise ValueError("percentage must be in 0..100")

    total = grid.total_cells
    required = (total * percentage) // 100
    flooded = grid.count(tile)
    if flooded == 0:
        raise ValueError(f"no {tile.name!r} tiles to flood from")

    table = grid.neighbours()
    passes = 0
    while flooded <= required and flooded < total:
        snapshot = grid.tiles_snapshot()
        for index, current in enumerate(snapshot):
            if flooded > required:
                break
            if current != tile:
                continue
            target = _neighbour(table, index, _DIRECTIONS[dice.d3() - 1])
            if target is None:
                _skipped(grid, "flood_to_percentage", grid.cell_of(index))
                continue
            if use_heights and dice.d100() > grid.get_height_at(target):
                continue
            if grid.get_tile_at(target) != tile:
                grid.set_tile_at(target, tile)
                flooded += 1
        flooded = grid.count(tile)
        passes += 1

    logger.info("flood complete", tile=tile.name, percentage=percentage, cells=flooded, passes=passes)
    return flooded


def _set_crater_tile(grid: Icosahedron, x: int, y: int) -> None:
    # Craters darken land and sink it below normal ground, but leave water alone.
    current = grid.get_tile(x, y)
    if current.is_water:
        return
    if grid.get_height(x, y) != CRATER_HEIGHT:
        grid.set_height(x, y, CRATER_HEIGHT)
        grid.set_tile(x, y, current.shaded(CRATER_SHADE))


def _crater_line(grid: Icosahedron, x: int, y: int, width: int) -> None:
    for column in range(x - width, x + width + 1):
        _set_crater_tile(grid, column, y)


def small_crater(grid: Icosahedron, x: int, y: int) -> None:
    """A crater one tile across."""

    _set_crater_tile(grid, x, y)


def medium_crater(grid: Icosahedron, x: int, y: int) -> None:
    """A hexagon of six tiles; (x, y) is the top or bottom centre tile."""

    _crater_line(grid, x, y, 1)
    far = grid.opposite(x, y)
    if far is None:
        _skipped(grid, "medium_crater", grid.normalize(x, y))
        return
    _crater_line(grid, far.x, far.y, 1)


def large_crater(grid: Icosahedron, x: int, y: int) -> None:
    """Two seven-tile rows through the centre, capped by five-tile rows above and below."""

    _crater_line(grid, x, y, 3)
    far = grid.opposite(x, y)
    if far is None:
        _skipped(grid, "large_crater", grid.normalize(x, y))
        return
    _crater_line(grid, far.x, far.y, 3)
    for cell in (far, grid.normalize(x, y)):
        cap = grid.up_down(cell.x, cell.y)
        if cap is None:
            _skipped(grid, "large_crater", cell)
            continue
        _crater_line(grid, cap.x, cap.y, 2)


def create_craters(grid: Icosahedron, dice: Dice, size: int, number: int) -> None:
    """Scatter `number` craters away from the poles; larger `size` favours bigger craters."""

    rows = grid.num_rows
    for _ in range(number):
        y = rows // 5 + dice.roll_zero((rows * 3) // 5)
        x = 2 + dice.roll_zero(grid.row_width(y) - 4)

        roll = dice.d6() + size
        if roll <= 1:
            small_crater(grid, x, y)
        elif roll <= 5:
            medium_crater(grid, x, y)
        else:
            large_crater(grid, x, y)
    logger.debug("craters placed", number=number, size=size)


def add_rift(grid: Icosahedron, dice: Dice, tile: Tile, length: int) -> None:
    """Cut a rift of `length` tiles, running mostly east/west near the equator."""

    rows = grid.num_rows
    y = rows // 4 + dice.die(rows // 2)
    x = dice.roll_zero(grid.row_width(y))

    for _ in range(length):
        if dice.d3() == 1:
            x = grid.west(x, y)
            cell = grid.up_down(x, y)
            if cell is None:
                _skipped(grid, "add_rift", Cell(x, y))
            else:
                x, y = cell
        grid.set_tile(x, y, tile)
        grid.set_height(x, y, RIFT_HEIGHT)
        x = grid.east(x, y)
