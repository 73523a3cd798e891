"""Surface classification values stored in each grid cell."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from icomap.rng import Dice

_HEX_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")

# Pure black and pure white are reserved for "no data" and the image background.
CHANNEL_MIN = 1
CHANNEL_MAX = 254


class Detail(Enum):
    """Surface overlay drawn on top of a tile's flat colour."""

    PLAIN = "plain"
    CRATERED = "cratered"
    ROUGH = "rough"


def clamp_channel(value: int) -> int:
    return max(CHANNEL_MIN, min(CHANNEL_MAX, int(value)))


def parse_rgb(rgb: str) -> tuple[int, int, int]:
    """Split a `#rrggbb` string into channel values."""

    if not _HEX_RE.fullmatch(rgb):
        raise ValueError(f"colour must be in #rrggbb form, got {rgb!r}")
    return int(rgb[1:3], 16), int(rgb[3:5], 16), int(rgb[5:7], 16)


def format_rgb(r: int, g: int, b: int) -> str:
    """Build a `#rrggbb` string, clamping each channel to 1..254."""

    return "#" + "".join(f"{clamp_channel(c):02x}" for c in (r, g, b))


@dataclass(frozen=True, eq=False)
class Tile:
    """A terrain type and its display colour.

    Tiles compare and hash by name, so a shaded or varied copy of a tile
    still counts as the same terrain for growth and counting purposes.
    """

    name: str
    rgb: str
    is_water: bool = False
    jitter: int = 3
    opacity: int = 0xFF
    detail: Detail = Detail.PLAIN

    def __post_init__(self) -> None:
        parse_rgb(self.rgb)
        if not 0 <= self.opacity <= 0xFF:
            raise ValueError("opacity must be in 0..255")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Tile):
            return NotImplemented
        return self.name == other.name

    def __hash__(self) -> int:
        return hash(self.name)

    def __str__(self) -> str:
        return self.rgb

    @classmethod
    def grey(cls, level: int, is_water: bool = False) -> "Tile":
        """Greyscale tile for height visualisation; level is capped to 1..254."""

        level = clamp_channel(level)
        return cls(f"G{level}", format_rgb(level, level, level), is_water, jitter=0)

    @property
    def channels(self) -> tuple[int, int, int]:
        return parse_rgb(self.rgb)

    def shaded(self, percent: int) -> "Tile":
        """Darker (below 100) or lighter (above 100) copy of this tile."""

        r, g, b = self.channels
        return replace(self, rgb=format_rgb((r * percent) // 100, (g * percent) // 100, (b * percent) // 100))

    def variant(self, delta: int) -> "Tile":
        """Copy with `delta` added to every channel."""

        r, g, b = self.channels
        return replace(self, rgb=format_rgb(r + delta, g + delta, b + delta))

    def mix(self, other: "Tile") -> "Tile":
        """Copy whose colour is the average of this tile and `other`."""

        r1, g1, b1 = self.channels
        r2, g2, b2 = other.channels
        return replace(self, rgb=format_rgb((r1 + r2) // 2, (g1 + g2) // 2, (b1 + b2) // 2))

    def with_detail(self, detail: Detail) -> "Tile":
        return replace(self, detail=detail)

    def with_opacity(self, opacity: int) -> "Tile":
        return replace(self, opacity=max(0, min(0xFF, int(opacity))))

    def shifted(self, factor: float) -> tuple[int, int, int]:
        """Channels scaled by `factor`, used for overlay highlights and shadows."""

        r, g, b = self.channels
        return clamp_channel(r * factor), clamp_channel(g * factor), clamp_channel(b * factor)

    def colour(self, dice: "Dice | None" = None) -> tuple[int, int, int, int]:
        """RGBA draw colour, jittered by a `jitter`-sided variance roll per channel when dice are given."""

        r, g, b = self.channels
        if dice is not None and self.jitter > 0:
            r, g, b = (c + dice.die_v(self.jitter) for c in (r, g, b))
        return clamp_channel(r), clamp_channel(g), clamp_channel(b), self.opacity


DEFAULT_TILE = Tile("Grey", "#777777")
