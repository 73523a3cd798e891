"""World surface pipeline: height chain, sea level, painting and surface features."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from icomap.config import MapConfig, SurfaceConfig
from icomap.fractal import generate_heights, sea_level
from icomap.grid import Icosahedron
from icomap.growth import add_rift, create_craters, flood_to_percentage, grow_border
from icomap.metrics import SurfaceMetrics, surface_metrics
from icomap.rng import Dice, RngStream
from icomap.tile import Detail, Tile

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SurfaceTiles:
    """The terrain types a surface is painted with."""

    water: Tile
    land: Tile
    rift: Tile
    ice: Tile
    sea_ice: Tile


@dataclass(frozen=True)
class WorldResult:
    """A painted grid and the statistics gathered while building it."""

    grid: Icosahedron
    sea_level: int
    tiles: SurfaceTiles
    metrics: SurfaceMetrics


def surface_tiles(cfg: SurfaceConfig) -> SurfaceTiles:
    return SurfaceTiles(
        water=Tile("Water", cfg.water_colour, is_water=True, jitter=2),
        land=Tile("Land", cfg.land_colour, jitter=2, detail=Detail(cfg.land_detail)),
        rift=Tile("Rift", cfg.rift_colour, jitter=2),
        ice=Tile("Ice", cfg.ice_colour, jitter=1),
        sea_ice=Tile("Sea Ice", cfg.sea_ice_colour, is_water=True, jitter=2),
    )


def paint_by_height(grid: Icosahedron, tiles: SurfaceTiles, level: int, cfg: SurfaceConfig) -> None:
    """Water at or below `level`, land above it, shaded lighter with height."""

    for index in range(grid.total_cells):
        height = grid.get_height_at(index)
        if height <= level:
            grid.set_tile_at(index, tiles.water)
        else:
            grid.set_tile_at(index, tiles.land.shaded(cfg.land_shade_base + height // 2))


def shade_water(grid: Icosahedron, water: Tile, cfg: SurfaceConfig) -> None:
    # Flooded cells and the original seas get the same depth shading.
    for index in range(grid.total_cells):
        if grid.get_tile_at(index) == water:
            grid.set_tile_at(index, water.shaded(cfg.water_shade_base + grid.get_height_at(index) // 2))


def add_ice_caps(grid: Icosahedron, tiles: SurfaceTiles, ice_latitude: int) -> int:
    """Freeze cells whose latitude, raised by their height, passes `ice_latitude`.

    Land counts a fifth of its height and becomes `tiles.ice`; water counts a
    tenth and becomes `tiles.sea_ice`, so seas freeze closer to the poles.
    """

    covered = 0
    for x, y in grid.cells():
        latitude = grid.latitude(y)
        height = grid.get_height(x, y)
        if grid.get_tile(x, y).is_water:
            if latitude + height // 10 > ice_latitude:
                grid.set_tile(x, y, tiles.sea_ice)
                covered += 1
        elif latitude + height // 5 > ice_latitude:
            grid.set_tile(x, y, tiles.ice)
            covered += 1
    return covered


def generate_world(rng: RngStream, config: MapConfig | None = None) -> WorldResult:
    """Generate a painted world map deterministically from `rng`."""

    cfg = config or MapConfig()
    surface = cfg.surface
    tiles = surface_tiles(surface)

    heights = generate_heights(
        cfg.face_size,
        cfg.fractal.variation,
        Dice.from_stream(rng, "heights"),
        start_size=cfg.fractal.start_face_size,
    )
    grid = Icosahedron(cfg.face_size)
    grid.copy_heights_from(heights)
    del heights

    level = sea_level(grid, surface.sea_percentage)
    paint_by_height(grid, tiles, level, surface)
    logger.info("surface painted", sea_level=level, water_cells=grid.count(tiles.water))

    surface_dice = Dice.from_stream(rng, "surface")
    if grid.count(tiles.water) > 0:
        if surface.flood_percentage > 0:
            flood_to_percentage(
                grid,
                tiles.water,
                surface.flood_percentage,
                surface_dice,
                use_heights=surface.flood_use_heights,
            )
        if surface.border_thickness > 0:
            grow_border(grid, tiles.water, surface.border_neighbours, surface.border_thickness)
        shade_water(grid, tiles.water, surface)
    else:
        logger.info("no water below sea level, skipping flood", sea_level=level)

    if surface.crater_count > 0:
        create_craters(grid, Dice.from_stream(rng, "craters"), surface.crater_size, surface.crater_count)

    rift_dice = Dice.from_stream(rng, "rifts")
    for _ in range(surface.rift_count):
        add_rift(grid, rift_dice, tiles.rift, surface.rift_length)

    if surface.ice_latitude > 0:
        covered = add_ice_caps(grid, tiles, surface.ice_latitude)
        logger.info("ice caps added", cells=covered)

    return WorldResult(grid=grid, sea_level=level, tiles=tiles, metrics=surface_metrics(grid))
