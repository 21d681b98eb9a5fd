from __future__ import annotations

import math
import numbers
from dataclasses import asdict, dataclass

from .errors import InvalidParameterError

# ================== CONFIG ==================
# Spatial resolution of the input raster. 10 px/mm = 254 DPI.
PIXELS_PER_MM = 10.0

# How far the fully raised region sticks out of the background (mm).
PUNCH_OUT_DEPTH_MM = 2.0

# Horizontal distance over which we ramp from background to full depth.
# The ramp is centered on the shape edge, so it reaches this far to both sides.
FADE_DISTANCE_MM = 4.5

# Thickness of the metal sheet pressed between the two dies (mm).
SHEET_THICKNESS_MM = 0.7

# Luminance (0..255) below which a pixel counts as RAISED ("black sticks out").
THRESHOLD = 128

# Output PNG bit depth. 16 bit gives ~0.04 um steps at the default range.
OUTPUT_BIT_DEPTH = 16
# ===========================================


@dataclass(frozen=True)
class Parameters:
    """
    The four physical knobs of a run. Nothing else is tunable.

    Passed explicitly into every stage; there's no global state besides the
    defaults above.
    """

    pixels_per_mm: float = PIXELS_PER_MM
    punch_out_depth_mm: float = PUNCH_OUT_DEPTH_MM
    fade_distance_mm: float = FADE_DISTANCE_MM
    sheet_thickness_mm: float = SHEET_THICKNESS_MM

    def validate(self) -> "Parameters":
        """
        Hard-fail on values that can't mean anything physically.

        Combinations (e.g. a sheet thicker than the relief) are left alone
        here; they show up as OutOfRangeError when we quantize.
        """
        for name, value in asdict(self).items():
            if not isinstance(value, numbers.Real) or not math.isfinite(value):
                raise InvalidParameterError(f"{name} must be a finite number, got {value!r}")
            if value < 0:
                raise InvalidParameterError(f"{name} must be >= 0, got {value}")
        if self.pixels_per_mm <= 0:
            raise InvalidParameterError(f"pixels_per_mm must be > 0, got {self.pixels_per_mm}")
        return self

    @property
    def dpi(self) -> float:
        # 1 inch = 25.4 mm
        return self.pixels_per_mm * 25.4

    @property
    def fade_distance_px(self) -> float:
        return self.fade_distance_mm * self.pixels_per_mm

    def to_dict(self) -> dict[str, float]:
        return {k: float(v) for k, v in asdict(self).items()}

    @classmethod
    def from_dict(cls, data: dict) -> "Parameters":
        return cls(**{k: float(data[k]) for k in cls.__dataclass_fields__ if k in data})


DEFAULT_PARAMETERS = Parameters()
