"""Surface coverage and connectivity metrics."""

from __future__ import annotations

from collections import Counter
from dataclasses import asdict, dataclass
from typing import Any, Callable

import numpy as np
from scipy.sparse import coo_matrix
from scipy.sparse.csgraph import connected_components

from icomap.grid import Icosahedron
from icomap.tile import Tile


@dataclass(frozen=True)
class RegionMetrics:
    """Connected region summary for the cells matching a predicate."""

    num_regions: int
    largest_region_cells: int
    total_cells: int
    largest_region_ratio: float
    fraction: float


@dataclass(frozen=True)
class SurfaceMetrics:
    """Coverage summary of a painted grid."""

    total_cells: int
    tile_counts: dict[str, int]
    water_fraction: float
    height_min: int
    height_max: int
    height_mean: float
    water: RegionMetrics
    land: RegionMetrics

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def connected_regions(grid: Icosahedron, predicate: Callable[[Tile], bool]) -> RegionMetrics:
    """Count regions of matching cells joined through west, east and up_down neighbours."""

    tiles = grid.tiles_snapshot()
    total = grid.total_cells
    mask = np.fromiter((bool(predicate(t)) for t in tiles), dtype=bool, count=total)
    matching = int(mask.sum())
    if matching == 0:
        return RegionMetrics(0, 0, 0, 0.0, 0.0)

    table = grid.neighbours()
    sources: list[np.ndarray] = []
    targets: list[np.ndarray] = []
    for links in (table.west, table.east, table.up_down):
        src = np.flatnonzero(mask & (links >= 0))
        dst = links[src]
        keep = mask[dst]
        sources.append(src[keep])
        targets.append(dst[keep])

    src = np.concatenate(sources)
    dst = np.concatenate(targets)
    graph = coo_matrix((np.ones(src.shape[0], dtype=np.int8), (src, dst)), shape=(total, total))
    _, labels = connected_components(graph, directed=False)

    sizes = np.bincount(labels[mask])
    sizes = sizes[sizes > 0]
    largest = int(sizes.max())
    return RegionMetrics(
        num_regions=int(sizes.shape[0]),
        largest_region_cells=largest,
        total_cells=matching,
        largest_region_ratio=float(largest / matching),
        fraction=float(matching / total),
    )


def surface_metrics(grid: Icosahedron) -> SurfaceMetrics:
    tiles = grid.tiles_snapshot()
    heights = grid.heights()
    water = connected_regions(grid, lambda t: t.is_water)
    land = connected_regions(grid, lambda t: not t.is_water)
    return SurfaceMetrics(
        total_cells=grid.total_cells,
        tile_counts=dict(sorted(Counter(t.name for t in tiles).items())),
        water_fraction=water.fraction,
        height_min=int(heights.min()),
        height_max=int(heights.max()),
        height_mean=float(heights.mean()),
        water=water,
        land=land,
    )
