from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

import numpy as np

from .distance import DistanceField
from .errors import InvalidParameterError

logger = logging.getLogger(__name__)


class FadeProfile(Enum):
    """
    Shape of the ramp across the fade band. Input t and output are both 0..1.

    LINEAR is the default. COSINE eases in and out (zero slope at both ends).
    """

    LINEAR = "linear"
    COSINE = "cosine"

    def __call__(self, t: np.ndarray) -> np.ndarray:
        if self is FadeProfile.COSINE:
            return (1.0 - np.cos(np.pi * t)) / 2.0
        return t


@dataclass(frozen=True)
class HeightField:
    """Base height (mm) per pixel, before splitting into positive/negative."""

    values: np.ndarray

    @property
    def shape(self) -> tuple[int, int]:
        return self.values.shape

    @property
    def min_mm(self) -> float:
        return float(self.values.min())

    @property
    def max_mm(self) -> float:
        return float(self.values.max())


def fade_heights(
    field: DistanceField,
    punch_out_depth_mm: float,
    fade_distance_mm: float,
    profile: FadeProfile = FadeProfile.LINEAR,
) -> HeightField:
    """
    Map signed distance to height.

    The ramp is centered on the shape edge and covers -fade..+fade:
      t = (d + fade) / (2 * fade), clipped to 0..1
      height = depth * profile(t)
    so:
      d >= +fade (deep inside RAISED)      => depth (flat top)
      d <= -fade (far out in BACKGROUND)   => 0 (flat background)

    fade == 0 is a plain step: depth on RAISED, 0 on BACKGROUND.
    """
    if punch_out_depth_mm < 0 or not np.isfinite(punch_out_depth_mm):
        raise InvalidParameterError(f"punch_out_depth_mm must be >= 0, got {punch_out_depth_mm}")
    if fade_distance_mm < 0 or not np.isfinite(fade_distance_mm):
        raise InvalidParameterError(f"fade_distance_mm must be >= 0, got {fade_distance_mm}")

    d = field.values
    depth = float(punch_out_depth_mm)

    if fade_distance_mm == 0:
        heights = np.where(d > 0, depth, 0.0)
    else:
        fade = float(fade_distance_mm)
        t = np.clip((d + fade) / (2.0 * fade), 0.0, 1.0)
        heights = depth * profile(t)
        # pin the flat regions so they're exact, not just close
        heights[t >= 1.0] = depth
        heights[t <= 0.0] = 0.0

    heights = np.asarray(heights, dtype=np.float64)
    heights.setflags(write=False)

    logger.debug(
        "Fade (%s, depth=%.4f mm, fade=%.4f mm): heights %.4f..%.4f mm",
        profile.value, depth, fade_distance_mm, float(heights.min()), float(heights.max()),
    )
    return HeightField(values=heights)
