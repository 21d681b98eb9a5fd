from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import cv2
import numpy as np

from .errors import InvalidParameterError
from .mask import Mask

logger = logging.getLogger(__name__)

# The shape edge sits on the pixel border between a RAISED and a BACKGROUND
# pixel, i.e. half a pixel away from the center of either.
BOUNDARY_OFFSET_PX = 0.5

METHODS = ("edt", "neighbors")


@dataclass(frozen=True)
class DistanceField:
    """
    Signed distance (mm) from every pixel to the shape edge.

    > 0 inside RAISED, < 0 inside BACKGROUND. Pixels touching the edge sit at
    +-0.5 px, so the sign always tells you the class.

    If max_distance_mm is set, magnitudes were capped there: a value equal
    to the cap means "at least this far".
    """

    values: np.ndarray
    pixels_per_mm: float
    max_distance_mm: float | None = None

    @property
    def shape(self) -> tuple[int, int]:
        return self.values.shape

    @property
    def raised(self) -> np.ndarray:
        return self.values > 0

    @property
    def magnitude(self) -> np.ndarray:
        return np.abs(self.values)


def neighbor_offsets(max_radius_px: float) -> list[tuple[int, int, float]]:
    """
    All integer offsets (dx, dy) within max_radius_px of the origin, closest first.

    Ties are broken by row then column (+Y is down), so the order is stable.
    Each entry is (dx, dy, distance_px). The origin is always first.
    """
    if max_radius_px < 0:
        raise InvalidParameterError(f"max_radius_px must be >= 0, got {max_radius_px}")

    r2 = max_radius_px * max_radius_px
    end_y = int(math.floor(max_radius_px))
    out = []
    for dy in range(-end_y, end_y + 1):
        end_x = int(math.floor(math.sqrt(max(r2 - dy * dy, 0.0))))
        for dx in range(-end_x, end_x + 1):
            d2 = dx * dx + dy * dy
            if d2 <= r2:
                out.append((d2, dy, dx))
    out.sort()
    return [(dx, dy, math.sqrt(d2)) for d2, dy, dx in out]


def _edt_px(source: np.ndarray) -> np.ndarray:
    """
    Exact Euclidean distance (px) from each True pixel to the nearest False pixel.

    OpenCV measures distance to the nearest zero pixel for every non-zero one.
    DIST_MASK_PRECISE switches it to the exact algorithm instead of the 3x3
    chamfer approximation.
    """
    src = source.astype(np.uint8)
    dist = cv2.distanceTransform(src, cv2.DIST_L2, cv2.DIST_MASK_PRECISE)
    return dist.astype(np.float64)


def _bounded_search_px(source: np.ndarray, target: np.ndarray, max_radius_px: float) -> np.ndarray:
    """
    Distance (px) from each source pixel to the nearest target pixel, only
    looking max_radius_px far. Pixels with nothing in range come back as inf.

    We walk the neighbor offsets closest-first and shift the whole target
    array by each offset, so the first hit per pixel is its nearest one and
    every pixel gets updated in one array op.
    """
    h, w = source.shape
    dist = np.full((h, w), np.inf)
    remaining = source.copy()

    for dx, dy, d in neighbor_offsets(max_radius_px):
        if not remaining.any():
            break
        if abs(dx) >= w or abs(dy) >= h:
            continue

        # hit[y, x] = target[y + dy, x + dx], False outside the image
        hit = np.zeros_like(remaining)
        hit[max(0, -dy):h - max(0, dy), max(0, -dx):w - max(0, dx)] = \
            target[max(0, dy):h - max(0, -dy), max(0, dx):w - max(0, -dx)]

        newly = remaining & hit
        dist[newly] = d
        remaining &= ~newly

    return dist


def compute_distance_field(
    mask: Mask,
    pixels_per_mm: float,
    max_distance_mm: float | None = None,
    method: str = "edt",
) -> DistanceField:
    """
    Two-class signed Euclidean distance transform, in mm.

    method:
    - "edt": exact transform over the whole image (OpenCV), optionally capped
    - "neighbors": bounded brute-force search, needs max_distance_mm

    Both give identical values up to the cap.
    """
    mask.check_not_degenerate()

    if not (pixels_per_mm > 0 and math.isfinite(pixels_per_mm)):
        raise InvalidParameterError(f"pixels_per_mm must be > 0, got {pixels_per_mm}")
    if max_distance_mm is not None and not (max_distance_mm > 0 and math.isfinite(max_distance_mm)):
        raise InvalidParameterError(f"max_distance_mm must be > 0 when given, got {max_distance_mm}")
    if method not in METHODS:
        raise InvalidParameterError(f"Unknown distance method {method!r} (expected one of {METHODS})")

    raised = mask.raised
    background = ~raised

    if method == "edt":
        raw_px = np.where(raised, _edt_px(raised), _edt_px(background))
    else:
        if max_distance_mm is None:
            raise InvalidParameterError('method="neighbors" needs max_distance_mm')
        # raw distance is measured center-to-center, the cap is edge-to-center
        radius_px = max_distance_mm * pixels_per_mm + BOUNDARY_OFFSET_PX + 1e-9
        raw_px = np.where(
            raised,
            _bounded_search_px(raised, background, radius_px),
            _bounded_search_px(background, raised, radius_px),
        )

    magnitude_mm = (raw_px - BOUNDARY_OFFSET_PX) / float(pixels_per_mm)
    if max_distance_mm is not None:
        magnitude_mm = np.minimum(magnitude_mm, float(max_distance_mm))

    values = np.where(raised, magnitude_mm, -magnitude_mm)
    values.setflags(write=False)

    logger.debug(
        "Distance field (%s): %dx%d, range %.4f..%.4f mm",
        method, mask.width, mask.height, float(values.min()), float(values.max()),
    )
    return DistanceField(values=values, pixels_per_mm=float(pixels_per_mm), max_distance_mm=max_distance_mm)
