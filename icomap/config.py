"""Configuration models for world map generation."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


DEFAULT_FACE_SIZE = 24
DEFAULT_MAP_WIDTH = 2048
DEFAULT_TEXTURE_SIZE = 1024


@dataclass(frozen=True)
class FractalConfig:
    """Controls the successive-refinement height chain."""

    start_face_size: int = 3
    variation: int = 24


@dataclass(frozen=True)
class SurfaceConfig:
    """Controls how water and land are painted onto the grid."""

    sea_percentage: int = 5
    flood_percentage: int = 30
    flood_use_heights: bool = False
    border_neighbours: int = 2
    border_thickness: int = 2
    crater_count: int = 0
    crater_size: int = 0
    rift_count: int = 0
    rift_length: int = 12
    water_colour: str = "#404070"
    land_colour: str = "#8B8B88"
    rift_colour: str = "#504840"
    ice_latitude: int = 0
    ice_colour: str = "#F0F0F8"
    sea_ice_colour: str = "#D0D0D8"
    land_shade_base: int = 50
    water_shade_base: int = 75
    land_detail: str = "plain"


@dataclass(frozen=True)
class RenderConfig:
    """Raster output configuration."""

    map_width: int = DEFAULT_MAP_WIDTH
    texture_size: int = DEFAULT_TEXTURE_SIZE
    cloud_colour: str = "#F0F0F0"
    write_texture: bool = True


@dataclass(frozen=True)
class MapConfig:
    """Primary generation configuration."""

    face_size: int = DEFAULT_FACE_SIZE
    fractal: FractalConfig = field(default_factory=FractalConfig)
    surface: SurfaceConfig = field(default_factory=SurfaceConfig)
    render: RenderConfig = field(default_factory=RenderConfig)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
