from __future__ import annotations

import json
import logging
import os
from pathlib import Path

import numpy as np
from PIL import Image
from PIL.PngImagePlugin import PngInfo

from .config import Parameters
from .errors import InvalidInputError
from .quantize import HeightScale, QuantizedImage

logger = logging.getLogger(__name__)

# PNG text chunk keys for the height scale, so a single image is self-describing.
SCALE_KEYS = ("dieforms:min_mm", "dieforms:max_mm", "dieforms:max_sample")


def load_pixels(path: Path) -> np.ndarray:
    """
    Decode an image into a numpy array the mask classifier understands.

    Grayscale (8 or 16 bit), RGB and RGBA come through as-is. Palette and
    other odd modes get converted to RGBA first so transparency survives.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input image not found: {path.resolve()}")

    with Image.open(path) as img:
        if img.mode in ("L", "RGB", "RGBA", "I;16"):
            return np.array(img)
        if img.mode == "I":
            # Pillow sometimes opens 16-bit grayscale PNGs as 32-bit "I"
            return np.clip(np.array(img), 0, 65535).astype(np.uint16)
        return np.array(img.convert("RGBA"))


def output_paths(input_path: Path, out_dir: Path | None = None) -> tuple[Path, Path, Path]:
    """
    <stem>.positive.png, <stem>.negative.png and <stem>.scale.json,
    next to the input unless out_dir is given.
    """
    input_path = Path(input_path)
    folder = Path(out_dir) if out_dir is not None else input_path.parent
    stem = input_path.stem
    return (
        folder / f"{stem}.positive.png",
        folder / f"{stem}.negative.png",
        folder / f"{stem}.scale.json",
    )


def save_form(image: QuantizedImage, path: Path, dpi: float) -> None:
    """
    Write one form as a grayscale PNG (8 bit "L" or 16 bit "I;16").

    DPI metadata keeps the physical size sane downstream, and the height
    scale goes into PNG text chunks.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    info = PngInfo()
    info.add_text(SCALE_KEYS[0], repr(image.scale.min_mm))
    info.add_text(SCALE_KEYS[1], repr(image.scale.max_mm))
    info.add_text(SCALE_KEYS[2], str(image.scale.max_sample))

    samples = np.ascontiguousarray(image.samples, dtype=image.scale.dtype)
    # format given explicitly, the path may carry a temporary suffix
    Image.fromarray(samples).save(path, format="PNG", pnginfo=info, dpi=(dpi, dpi))
    logger.debug("Wrote %s (%dx%d, %d bit)", path, image.width, image.height, image.scale.bit_depth)


def read_form(path: Path) -> QuantizedImage:
    """Read back a form written by save_form, scale included."""
    with Image.open(path) as img:
        text = getattr(img, "text", {}) or {}
        missing = [k for k in SCALE_KEYS if k not in text]
        if missing:
            raise InvalidInputError(f"{path} has no height scale metadata (missing {', '.join(missing)})")
        scale = HeightScale(float(text[SCALE_KEYS[0]]), float(text[SCALE_KEYS[1]]), int(text[SCALE_KEYS[2]]))
        samples = np.array(img)
    return QuantizedImage(samples=samples.astype(scale.dtype), scale=scale)


def save_scale(path: Path, scale: HeightScale, params: Parameters) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = {"scale": scale.to_dict(), "parameters": params.to_dict()}
    with open(path, "w") as f:
        json.dump(data, f, indent=2)


def load_scale(path: Path) -> tuple[HeightScale, Parameters]:
    with open(path) as f:
        data = json.load(f)
    return HeightScale.from_dict(data["scale"]), Parameters.from_dict(data["parameters"])


def save_outputs(
    positive: QuantizedImage,
    negative: QuantizedImage,
    params: Parameters,
    paths: tuple[Path, Path, Path],
) -> None:
    """
    Write both forms and the scale sidecar, all or nothing.

    Everything goes to "<name>.part" first and only gets renamed once all
    three writes worked. On failure the partial files are removed and the
    error is re-raised.
    """
    targets = [Path(p) for p in paths]
    parts = [p.with_name(p.name + ".part") for p in targets]
    try:
        save_form(positive, parts[0], params.dpi)
        save_form(negative, parts[1], params.dpi)
        save_scale(parts[2], positive.scale, params)
    except Exception:
        for part in parts:
            part.unlink(missing_ok=True)
        raise

    for part, target in zip(parts, targets):
        os.replace(part, target)
    logger.info("Wrote %s", ", ".join(str(t) for t in targets))
