"""Output serialization for generated world maps."""

from __future__ import annotations

import json
from pathlib import Path
import shutil
from typing import Any

import numpy as np
from PIL import Image


def resolve_output_dir(out_root: str | Path, seed_name: str, face_size: int, *, overwrite: bool) -> Path:
    """Create and return the output directory for one generation run."""

    target = Path(out_root) / seed_name / f"f{face_size}"
    if target.exists() and any(target.iterdir()) and not overwrite:
        raise FileExistsError(
            f"Output directory already exists and is not empty: {target}. Use --overwrite to replace files."
        )
    target.mkdir(parents=True, exist_ok=True)
    return target


def clean_output_dir(target: Path) -> None:
    """Delete all children of target directory."""

    for child in target.iterdir():
        if child.is_symlink() or child.is_file():
            child.unlink()
        elif child.is_dir():
            shutil.rmtree(child)


def publish_staged(stage_dir: Path, target: Path) -> int:
    """Replace the contents of `target` with the files written to `stage_dir`."""

    clean_output_dir(target)
    moved = 0
    for child in stage_dir.iterdir():
        shutil.move(str(child), str(target / child.name))
        moved += 1
    return moved


def write_heights_npy(path: str | Path, heights: np.ndarray) -> None:
    np.save(Path(path), heights.astype(np.int16), allow_pickle=False)


def write_png(path: str | Path, image: Image.Image) -> None:
    image.save(Path(path), format="PNG")


def write_json(path: str | Path, payload: dict[str, Any]) -> None:
    text = json.dumps(payload, indent=2, sort_keys=True)
    Path(path).write_text(text + "\n", encoding="utf-8")
