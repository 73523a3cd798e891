"""CLI entry point for world map generation."""

from __future__ import annotations

import argparse
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
import platform
import shutil
import tempfile
import time

import numpy as np
import structlog

from icomap.config import DEFAULT_FACE_SIZE, DEFAULT_MAP_WIDTH, DEFAULT_TEXTURE_SIZE, MapConfig
from icomap.fractal import generate_heights
from icomap.io import publish_staged, resolve_output_dir, write_heights_npy, write_json, write_png
from icomap.log import configure_logging
from icomap.raster import draw_height_map, draw_transparency, rasterize
from icomap.remap import stretch_image
from icomap.rng import Dice, RngStream
from icomap.seed import SeedParseError, directory_name, parse_seed
from icomap.tile import Detail
from icomap.world import generate_world

logger = structlog.get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Deterministic icosahedral world map generator")
    parser.add_argument("--seed", required=True, help="World seed: a decimal integer or any name (e.g. 'Tau Ceti IV')")
    parser.add_argument("--out", default="out", help="Output root directory")
    parser.add_argument(
        "--face-size",
        type=int,
        default=DEFAULT_FACE_SIZE,
        help="Rows per icosahedron face; must be 3 times a power of two",
    )
    parser.add_argument("--width", type=int, default=DEFAULT_MAP_WIDTH, help="Target map image width in pixels")
    parser.add_argument(
        "--texture-size",
        type=int,
        default=DEFAULT_TEXTURE_SIZE,
        help="Height of the equirectangular texture; its width is twice this",
    )
    parser.add_argument("--variation", type=int, default=None, help="Initial fractal height variation")
    parser.add_argument("--sea", type=int, default=None, help="Percentage of the surface below sea level")
    parser.add_argument("--flood", type=int, default=None, help="Target water coverage percentage")
    parser.add_argument("--craters", type=int, default=None, help="Number of craters to place")
    parser.add_argument("--rifts", type=int, default=None, help="Number of rifts to cut")
    parser.add_argument("--ice", type=int, default=None, help="Latitude beyond which ice caps form (0 disables)")
    parser.add_argument(
        "--detail",
        choices=[d.value for d in Detail],
        default=None,
        help="Surface detail drawn on land tiles",
    )
    parser.add_argument("--cmap", default=None, help="matplotlib colormap for height.png (default greyscale)")
    parser.add_argument("--clouds", action="store_true", help="Also write a cloud layer")
    parser.add_argument(
        "--texture",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Write the equirectangular texture",
    )
    parser.add_argument("--overwrite", action="store_true", help="Overwrite files in existing output directory")
    parser.add_argument(
        "--json",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Write metadata JSON files",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Logging level for progress events",
    )
    parser.add_argument("--log-json", action="store_true", help="Emit log events as JSON lines")
    return parser


def config_from_args(args: argparse.Namespace) -> MapConfig:
    base = MapConfig()
    fractal = base.fractal
    if args.variation is not None:
        fractal = replace(fractal, variation=args.variation)

    overrides = {
        "sea_percentage": args.sea,
        "flood_percentage": args.flood,
        "crater_count": args.craters,
        "rift_count": args.rifts,
        "ice_latitude": args.ice,
        "land_detail": args.detail,
    }
    surface = replace(base.surface, **{k: v for k, v in overrides.items() if v is not None})
    render = replace(
        base.render,
        map_width=args.width,
        texture_size=args.texture_size,
        write_texture=args.texture,
    )
    return MapConfig(face_size=args.face_size, fractal=fractal, surface=surface, render=render)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        parsed_seed = parse_seed(args.seed)
    except SeedParseError as exc:
        parser.error(str(exc))

    configure_logging(args.log_level, json=args.log_json)
    config = config_from_args(args)
    rng = RngStream(parsed_seed.seed_hash)

    generation_start = time.perf_counter()
    try:
        result = generate_world(rng, config)
    except ValueError as exc:
        parser.error(str(exc))
    generation_seconds = time.perf_counter() - generation_start

    render_start = time.perf_counter()
    draw_dice = Dice.from_stream(rng, "draw")
    surface_map = rasterize(result.grid, config.render.map_width, draw_dice)
    images = {
        "map.png": surface_map,
        "height.png": draw_height_map(result.grid, config.render.map_width, cmap=args.cmap),
    }
    if config.render.write_texture:
        images["texture.png"] = stretch_image(surface_map, config.render.texture_size)
    if args.clouds:
        clouds = generate_heights(
            config.face_size,
            config.fractal.variation,
            Dice.from_stream(rng, "clouds"),
            start_size=config.fractal.start_face_size,
        )
        cloud_layer = draw_transparency(clouds, config.render.cloud_colour, config.render.map_width, draw_dice)
        if config.render.write_texture:
            cloud_layer = stretch_image(cloud_layer, config.render.texture_size)
        images["clouds.png"] = cloud_layer
    render_seconds = time.perf_counter() - render_start

    out_dir = resolve_output_dir(
        args.out,
        directory_name(parsed_seed),
        config.face_size,
        overwrite=args.overwrite,
    )

    stage_dir = Path(tempfile.mkdtemp(prefix=".staging-", dir=str(out_dir.parent)))
    try:
        write_heights_npy(stage_dir / "heights.npy", result.grid.heights())
        for name, image in images.items():
            write_png(stage_dir / name, image)
        if args.json:
            deterministic_meta = {
                "canonical_seed": parsed_seed.canonical,
                "seed_hash": parsed_seed.seed_hash,
                "face_size": config.face_size,
                "num_rows": result.grid.num_rows,
                "sea_level": result.sea_level,
                "map_size": list(surface_map.size),
                "config": config.to_dict(),
                "metrics": result.metrics.to_dict(),
            }
            meta = {
                **deterministic_meta,
                "generated_at_utc": datetime.now(timezone.utc).isoformat(),
                "original_seed": parsed_seed.original,
                "generation_seconds": generation_seconds,
                "render_seconds": render_seconds,
                "python_version": platform.python_version(),
                "numpy_version": np.__version__,
            }
            write_json(stage_dir / "deterministic_meta.json", deterministic_meta)
            write_json(stage_dir / "meta.json", meta)

        file_count = publish_staged(stage_dir, out_dir)
    finally:
        shutil.rmtree(stage_dir, ignore_errors=True)
    logger.info("outputs written", out_dir=str(out_dir), files=file_count)

    metrics = result.metrics
    print(f"Generated world: {out_dir}")
    print(
        f"Face size {config.face_size}: {metrics.total_cells} cells, "
        f"sea level {result.sea_level}, "
        f"heights {metrics.height_min}..{metrics.height_max} (mean {metrics.height_mean:.1f})"
    )
    print(
        "Water fraction "
        f"{metrics.water_fraction:.3f}; "
        f"{metrics.water.num_regions} water regions, "
        f"{metrics.land.num_regions} land regions, "
        f"largest landmass ratio {metrics.land.largest_region_ratio:.3f}"
    )
    print(f"Map image {surface_map.size[0]}x{surface_map.size[1]}")
    print(f"Generation time: {generation_seconds:.3f} s, render time: {render_seconds:.3f} s")
    print(f"Output files: {file_count}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
