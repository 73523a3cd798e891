from __future__ import annotations

import json

import numpy as np
from PIL import Image
import pytest

from cli.main import main


def _args(out_dir, *extra: str) -> list[str]:
    return [
        "--seed",
        "Selene",
        "--out",
        str(out_dir),
        "--face-size",
        "6",
        "--width",
        "512",
        "--texture-size",
        "64",
        *extra,
    ]


def test_runtime_fields_only_in_meta_json(tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    out_dir = tmp_path / "out"
    code = main(_args(out_dir, "--overwrite"))
    assert code == 0

    base = out_dir / "selene" / "f6"
    meta = json.loads((base / "meta.json").read_text(encoding="utf-8"))
    deterministic_meta = json.loads((base / "deterministic_meta.json").read_text(encoding="utf-8"))

    assert meta["generation_seconds"] >= 0.0
    assert meta["render_seconds"] >= 0.0
    assert "generated_at_utc" in meta
    assert meta["original_seed"] == "Selene"

    assert "generation_seconds" not in deterministic_meta
    assert "generated_at_utc" not in deterministic_meta

    assert deterministic_meta["canonical_seed"] == "selene"
    assert deterministic_meta["face_size"] == 6
    assert deterministic_meta["num_rows"] == 18
    assert deterministic_meta["config"]["face_size"] == 6
    assert deterministic_meta["metrics"]["total_cells"] == 720
    assert "water" in deterministic_meta["metrics"]

    for name in ("map.png", "height.png", "texture.png", "heights.npy"):
        assert (base / name).exists(), name
    assert not (base / "clouds.png").exists()

    heights = np.load(base / "heights.npy")
    assert heights.shape == (720,)
    with Image.open(base / "texture.png") as texture:
        assert texture.size == (128, 64)
    with Image.open(base / "map.png") as surface:
        assert surface.size[0] <= 512


def test_overwrite_cleans_stale_outputs(tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    out_dir = tmp_path / "out"
    base = out_dir / "selene" / "f6"

    assert main(_args(out_dir, "--clouds")) == 0
    with Image.open(base / "clouds.png") as clouds:
        assert clouds.size == (128, 64)

    with pytest.raises(FileExistsError):
        main(_args(out_dir))

    assert main(_args(out_dir, "--overwrite", "--no-texture", "--no-json")) == 0
    assert not (base / "clouds.png").exists()
    assert not (base / "texture.png").exists()
    assert not (base / "meta.json").exists()
    assert (base / "map.png").exists()


def test_clouds_stay_unstretched_without_texture(tmp_path) -> None:
    out_dir = tmp_path / "out"
    base = out_dir / "selene" / "f6"

    assert main(_args(out_dir, "--clouds", "--no-texture")) == 0

    with Image.open(base / "clouds.png") as clouds, Image.open(base / "map.png") as surface:
        assert clouds.size == surface.size


def test_same_seed_same_outputs(tmp_path) -> None:
    first = tmp_path / "a"
    second = tmp_path / "b"

    assert main(_args(first, "--craters", "3", "--cmap", "terrain")) == 0
    assert main(_args(second, "--craters", "3", "--cmap", "terrain")) == 0

    for name in ("map.png", "height.png", "texture.png", "heights.npy", "deterministic_meta.json"):
        a = (first / "selene" / "f6" / name).read_bytes()
        b = (second / "selene" / "f6" / name).read_bytes()
        assert a == b, name


@pytest.mark.parametrize("extra", [["--face-size", "5"], ["--sea", "120"]])
def test_invalid_settings_exit_with_usage_error(tmp_path, extra) -> None:
    with pytest.raises(SystemExit) as exc:
        main(_args(tmp_path / "out", *extra))

    assert exc.value.code == 2


def test_blank_seed_is_rejected(tmp_path) -> None:
    with pytest.raises(SystemExit) as exc:
        main(["--seed", "   ", "--out", str(tmp_path)])

    assert exc.value.code == 2
