"""Stretch a rasterized icosahedral map into a seamless equirectangular texture."""

from __future__ import annotations

import numpy as np
from PIL import Image
import structlog

from icomap.raster import BACKGROUND

logger = structlog.get_logger(__name__)

# Share of the width moved from the right edge to the left to undo the slant of the unfolding.
SHIFT_FRACTION = 11


def _is_empty(pixels: np.ndarray) -> np.ndarray:
    background = np.asarray(BACKGROUND, dtype=np.uint8)
    return np.all(pixels == background, axis=-1) | np.all(pixels == 0, axis=-1)


def shift_right_edge(pixels: np.ndarray) -> None:
    """Move the non-empty pixels of the rightmost 1/11th of each row onto the left edge, in place."""

    width = pixels.shape[1]
    shift_width = width // SHIFT_FRACTION
    if shift_width == 0:
        return
    right_base = width - shift_width
    right = pixels[:, right_base:, :]
    moving = ~_is_empty(right)
    pixels[:, :shift_width, :][moving] = right[moving]
    right[moving] = np.asarray(BACKGROUND, dtype=np.uint8)


def stretch_row(row: np.ndarray) -> np.ndarray:
    """Spread the non-empty pixels of one row evenly across its full width.

    Each pixel is repeated by a whole number of columns, carrying the
    fractional remainder forward; any columns left at the end take the last
    pixel's colour. A row with no content comes back empty.
    """

    width = row.shape[0]
    content = row[~_is_empty(row)]
    count = content.shape[0]
    if count == 0:
        return np.tile(np.asarray(BACKGROUND, dtype=np.uint8), (width, 1))

    stretch = width / count
    edges = np.floor(np.arange(1, count + 1) * stretch + 1e-9).astype(np.int64)
    repeats = np.diff(edges, prepend=0)
    stretched = np.repeat(content, repeats, axis=0)[:width]
    if stretched.shape[0] < width:
        padding = np.tile(content[-1], (width - stretched.shape[0], 1))
        stretched = np.concatenate([stretched, padding], axis=0)
    return stretched


def stretch_image(image: Image.Image, size: int) -> Image.Image:
    """Build a `2*size` x `size` texture from a rasterized map.

    Empty space is the fully transparent white background, so map content
    must never be pure white.
    """

    if size <= 0:
        raise ValueError("size must be positive")

    pixels = np.array(image.convert("RGBA"), dtype=np.uint8)
    shift_right_edge(pixels)
    for y in range(pixels.shape[0]):
        pixels[y] = stretch_row(pixels[y])

    stretched = Image.fromarray(pixels)
    texture = stretched.resize((size * 2, size), Image.Resampling.NEAREST)
    logger.info("stretched map", source=image.size, size=texture.size)
    return texture
