from __future__ import annotations

import logging
from enum import Enum

import numpy as np

from .config import THRESHOLD
from .errors import InvalidInputError

logger = logging.getLogger(__name__)


class PixelClass(Enum):
    # RAISED = the punched-out part that sticks out of the finished sheet
    RAISED = "raised"
    BACKGROUND = "background"


class Mask:
    """
    Read-only two-class grid derived once from the input image.

    Stored as a boolean array (True = RAISED) because every later stage works
    on whole arrays, but the public view is PixelClass so the sign
    convention stays explicit.
    """

    def __init__(self, raised: np.ndarray) -> None:
        raised = np.array(raised, dtype=bool, copy=True)
        if raised.ndim != 2:
            raise InvalidInputError(f"Mask must be 2D, got shape {raised.shape}")
        raised.setflags(write=False)
        self.raised = raised

    @property
    def shape(self) -> tuple[int, int]:
        return self.raised.shape

    @property
    def height(self) -> int:
        return self.raised.shape[0]

    @property
    def width(self) -> int:
        return self.raised.shape[1]

    @property
    def raised_count(self) -> int:
        return int(self.raised.sum())

    @property
    def background_count(self) -> int:
        return int(self.raised.size - self.raised.sum())

    def at(self, x: int, y: int) -> PixelClass:
        return PixelClass.RAISED if self.raised[y, x] else PixelClass.BACKGROUND

    def classes(self) -> np.ndarray:
        """Object array of PixelClass, mostly for debugging and tests."""
        out = np.full(self.shape, PixelClass.BACKGROUND, dtype=object)
        out[self.raised] = PixelClass.RAISED
        return out

    def check_not_degenerate(self) -> "Mask":
        """
        Hard-fail if there's no boundary anywhere.

        An all-black or all-white image has nothing to measure distances to,
        so the distance field is undefined.
        """
        if self.raised.size == 0:
            raise InvalidInputError(f"Image has zero size ({self.width}x{self.height}).")
        if self.raised_count == 0:
            raise InvalidInputError(
                "Mask has no RAISED pixels (nothing darker than the threshold).\n"
                "Check the threshold or whether the image is inverted."
            )
        if self.background_count == 0:
            raise InvalidInputError(
                "Mask has no BACKGROUND pixels (everything is darker than the threshold).\n"
                "Check the threshold or whether the image is inverted."
            )
        return self


def luminance(pixels: np.ndarray) -> np.ndarray:
    """
    Reduce a decoded image to a float luminance array on a 0..255 scale.

    Accepts:
    - (H, W) grayscale
    - (H, W, 3) RGB
    - (H, W, 4) RGBA, fully transparent pixels come out white (background)

    Integer dtypes are normalized by their max value so a 16-bit PNG
    thresholds the same as an 8-bit one. Floats are assumed to be 0..1.
    """
    arr = np.asarray(pixels)
    if arr.ndim not in (2, 3):
        raise InvalidInputError(f"Expected a 2D or 3D pixel array, got shape {arr.shape}")
    if arr.shape[0] == 0 or arr.shape[1] == 0:
        raise InvalidInputError(f"Image has zero size (shape {arr.shape}).")

    if np.issubdtype(arr.dtype, np.integer):
        scale = 255.0 / float(np.iinfo(arr.dtype).max)
    else:
        # bool or float, both 0..1
        scale = 255.0
    arr = arr.astype(np.float64) * scale

    if arr.ndim == 2:
        return arr

    channels = arr.shape[2]
    if channels == 1:
        return arr[:, :, 0]
    if channels not in (3, 4):
        raise InvalidInputError(f"Unsupported channel count {channels} (expected 1, 3 or 4)")

    rgb = arr[:, :, :3]
    # Standard luminance conversion, same weights as PIL's "L" mode
    gray = 0.299 * rgb[:, :, 0] + 0.587 * rgb[:, :, 1] + 0.114 * rgb[:, :, 2]
    if channels == 4:
        gray[arr[:, :, 3] <= 0] = 255.0
    return gray


def classify(pixels: np.ndarray, threshold: float = THRESHOLD) -> Mask:
    """
    Turn raw pixels into a RAISED/BACKGROUND mask.

    Rule: luminance < threshold => RAISED, else BACKGROUND.
    Raises InvalidInputError for empty or single-class images.
    """
    gray = luminance(pixels)
    mask = Mask(gray < float(threshold))
    logger.debug(
        "Classified %dx%d image: %d raised, %d background (threshold=%s)",
        mask.width, mask.height, mask.raised_count, mask.background_count, threshold,
    )
    return mask.check_not_degenerate()
