"""Rasterization of icosahedral grids into RGBA images."""

from __future__ import annotations

import math
from typing import Callable, Sequence

from matplotlib import colormaps
import numpy as np
from PIL import Image, ImageDraw
import structlog

from icomap.grid import MAX_HEIGHT, Icosahedron
from icomap.rng import Dice
from icomap.tile import Detail, Tile, format_rgb

logger = structlog.get_logger(__name__)

ROOT3 = math.sqrt(3.0)

# Fully transparent white. Tile colours never reach 255, so this marks empty space.
BACKGROUND = (255, 255, 255, 0)
NO_DATA = (1, 1, 1, 255)


def tile_pixel_size(grid: Icosahedron, width: int) -> int:
    """Largest whole tile width, in pixels, that fits the map into `width`."""

    columns = grid.topology.max_global_x
    size = width // columns
    if size < 1:
        raise ValueError(f"width {width} is too small for a face size {grid.face_size} map (needs {columns}px)")
    return size


def image_size(grid: Icosahedron, tile_px: int) -> tuple[int, int]:
    columns = grid.topology.max_global_x
    return tile_px * columns + tile_px, int(grid.num_rows * tile_px * ROOT3)


def tile_anchor(grid: Icosahedron, x: int, y: int, tile_px: int) -> tuple[int, int, int]:
    """Pixel position of a tile's base corner and its signed pixel height.

    The base is the left corner of the flat side: the bottom for tiles that
    point up, the top for tiles that point down.
    """

    direction = grid.orientation(x, y)
    row_px = tile_px * ROOT3
    px = (grid.global_x(x, y) - 1) * tile_px
    py = int(y * row_px)
    if direction > 0:
        py = int(py - row_px)
    return px, py + int(row_px), int(row_px * direction)


def _triangle(px: int, py: int, w: int, h: int) -> list[tuple[int, int]]:
    return [(px, py), (px + 2 * w, py), (px + w, py + h)]


def _cratered(draw: ImageDraw.ImageDraw, tile: Tile, dice: Dice, px: int, py: int, w: int, h: int) -> None:
    floor = tile.shifted(0.85)
    walls = tile.shifted(1.1)
    var = max(2, w // 5)

    roll = dice.d6()
    count = 1 if roll <= 3 else 2 if roll <= 5 else 3
    craters = []
    for _ in range(count):
        radius = max(1, w // 4 + dice.die_v(var))
        cx = px + w + dice.die_v(var + count // 2)
        cy = py + int(h / 2) + dice.die_v(var + count // 2)
        craters.append((cx, cy, radius))

    # All walls first, so overlapping floors are drawn over neighbouring walls.
    for cx, cy, r in craters:
        draw.ellipse((cx - r, cy - r, cx + r, cy + r), outline=walls)
    for cx, cy, r in craters:
        r -= 1
        draw.ellipse((cx - r, cy - r, cx + r, cy + r), fill=floor)


def _rough(draw: ImageDraw.ImageDraw, tile: Tile, dice: Dice, px: int, py: int, w: int, h: int) -> None:
    dark = tile.shifted(0.9)
    light = tile.shifted(1.1)
    height = abs(h)
    step = 1 if h >= 0 else -1
    for yy in range(height):
        span = (w * (height - yy)) // height
        for xx in range(-span, span):
            roll = dice.d3()
            colour = dark if roll == 1 else light if roll == 2 else tile.colour(dice)
            draw.point((px + xx + w, py + step * yy), fill=colour)


_DETAIL_PAINTERS: dict[Detail, Callable[..., None]] = {
    Detail.CRATERED: _cratered,
    Detail.ROUGH: _rough,
}


def rasterize(
    grid: Icosahedron,
    width: int,
    dice: Dice | None = None,
    *,
    tiles: Sequence[Tile | None] | None = None,
    details: bool = True,
) -> Image.Image:
    """Draw the grid as triangles into an RGBA image about `width` pixels wide.

    The tile size is chosen so the map fits exactly, so the image is usually
    slightly narrower than requested. `tiles` replaces the grid's own tiles
    (in flat cell order) for drawing derived layers; missing entries are
    drawn near-black. Colour jitter and detail overlays need `dice`.
    """

    layer = grid.tiles_snapshot() if tiles is None else tiles
    if len(layer) != grid.total_cells:
        raise ValueError(f"expected {grid.total_cells} tiles, got {len(layer)}")

    tile_px = tile_pixel_size(grid, width)
    image = Image.new("RGBA", image_size(grid, tile_px), BACKGROUND)
    draw = ImageDraw.Draw(image)

    for index, (x, y) in enumerate(grid.cells()):
        px, py, h = tile_anchor(grid, x, y, tile_px)
        points = _triangle(px, py, tile_px, h)
        tile = layer[index]
        if tile is None:
            draw.polygon(points, fill=NO_DATA, outline=NO_DATA)
            continue
        colour = tile.colour(dice)
        draw.polygon(points, fill=colour, outline=colour)
        painter = _DETAIL_PAINTERS.get(tile.detail)
        if details and painter is not None and dice is not None:
            painter(draw, tile, dice, px, py, tile_px, h)

    logger.info("rasterized map", face_size=grid.face_size, tile_px=tile_px, size=image.size)
    return image


def height_tiles(grid: Icosahedron, cmap: str | None = None) -> list[Tile]:
    """One tile per cell showing its height: greyscale, or through a matplotlib colormap."""

    if cmap is None:
        palette = {h: Tile.grey(h * 2) for h in range(MAX_HEIGHT + 1)}
    else:
        colormap = colormaps[cmap]
        levels = np.arange(MAX_HEIGHT + 1)
        rgba = colormap(levels / MAX_HEIGHT)
        palette = {
            int(h): Tile(f"H{h}", format_rgb(*(int(round(c * 255)) for c in rgba[h][:3])), jitter=0)
            for h in levels
        }
    return [palette[int(h)] for h in grid.heights()]


def transparency_tiles(grid: Icosahedron, colour: str) -> list[Tile]:
    """One tile per cell in `colour`, opaque in proportion to height. Used for cloud layers."""

    base = Tile("T", colour, jitter=2)
    palette = {h: base.with_opacity(int(h * 2.5)) for h in range(MAX_HEIGHT + 1)}
    return [palette[int(h)] for h in grid.heights()]


def draw_height_map(grid: Icosahedron, width: int, *, cmap: str | None = None) -> Image.Image:
    return rasterize(grid, width, tiles=height_tiles(grid, cmap), details=False)


def draw_transparency(grid: Icosahedron, colour: str, width: int, dice: Dice | None = None) -> Image.Image:
    return rasterize(grid, width, dice, tiles=transparency_tiles(grid, colour), details=False)
