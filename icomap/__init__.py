"""Icosahedral world map generation package."""

from .config import DEFAULT_FACE_SIZE, DEFAULT_MAP_WIDTH, DEFAULT_TEXTURE_SIZE, MapConfig
from .grid import Cell, Icosahedron
from .tile import Detail, Tile

__all__ = [
    "DEFAULT_FACE_SIZE",
    "DEFAULT_MAP_WIDTH",
    "DEFAULT_TEXTURE_SIZE",
    "MapConfig",
    "Cell",
    "Icosahedron",
    "Detail",
    "Tile",
]
