from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np

from .config import OUTPUT_BIT_DEPTH, Parameters
from .errors import InvalidParameterError, OutOfRangeError
from .fade import HeightField
from .forms import FormPair

logger = logging.getLogger(__name__)

# How far outside the range we still accept (and clamp) as float noise.
DEFAULT_TOLERANCE_MM = 1e-9

_DTYPES = {8: np.uint8, 16: np.uint16}


@dataclass(frozen=True)
class HeightScale:
    """
    Linear map between physical height and grayscale sample.

    min_mm -> 0, max_mm -> max_sample. One instance is shared by both
    outputs so a downstream tool can turn either image back into mm the
    same way.
    """

    min_mm: float
    max_mm: float
    max_sample: int

    def __post_init__(self) -> None:
        if not (math.isfinite(self.min_mm) and math.isfinite(self.max_mm)):
            raise InvalidParameterError(f"Height range must be finite, got {self.min_mm}..{self.max_mm}")
        if self.max_mm < self.min_mm:
            raise InvalidParameterError(f"Height range is inverted: {self.min_mm}..{self.max_mm}")
        if self.max_sample not in (255, 65535):
            raise InvalidParameterError(f"max_sample must be 255 or 65535, got {self.max_sample}")

    @property
    def bit_depth(self) -> int:
        return 8 if self.max_sample == 255 else 16

    @property
    def dtype(self) -> type:
        return _DTYPES[self.bit_depth]

    @property
    def span_mm(self) -> float:
        return self.max_mm - self.min_mm

    @property
    def mm_per_step(self) -> float:
        return self.span_mm / self.max_sample

    def to_samples(self, heights_mm: np.ndarray) -> np.ndarray:
        """Heights (already range-checked) -> integer samples, rounded to nearest."""
        if self.span_mm == 0:
            return np.zeros(np.shape(heights_mm), dtype=self.dtype)
        t = (np.asarray(heights_mm, dtype=np.float64) - self.min_mm) / self.span_mm
        samples = np.rint(np.clip(t, 0.0, 1.0) * self.max_sample)
        return samples.astype(self.dtype)

    def to_mm(self, samples: np.ndarray) -> np.ndarray:
        return self.min_mm + np.asarray(samples, dtype=np.float64) * self.mm_per_step

    def to_dict(self) -> dict:
        return {
            "min_mm": self.min_mm,
            "max_mm": self.max_mm,
            "max_sample": self.max_sample,
            "mm_per_step": self.mm_per_step,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "HeightScale":
        return cls(float(data["min_mm"]), float(data["max_mm"]), int(data["max_sample"]))


@dataclass(frozen=True)
class QuantizedImage:
    samples: np.ndarray
    scale: HeightScale

    @property
    def width(self) -> int:
        return self.samples.shape[1]

    @property
    def height(self) -> int:
        return self.samples.shape[0]

    def to_mm(self) -> np.ndarray:
        return self.scale.to_mm(self.samples)


def height_range(params: Parameters) -> tuple[float, float]:
    """Physical range both forms have to fit in: 0 .. depth + thickness."""
    return 0.0, float(params.punch_out_depth_mm) + float(params.sheet_thickness_mm)


def scale_for(params: Parameters, bit_depth: int = OUTPUT_BIT_DEPTH) -> HeightScale:
    if bit_depth not in _DTYPES:
        raise InvalidParameterError(f"bit_depth must be 8 or 16, got {bit_depth}")
    lo, hi = height_range(params)
    return HeightScale(min_mm=lo, max_mm=hi, max_sample=(1 << bit_depth) - 1)


def _first_bad_pixel(bad: np.ndarray) -> tuple[int, int]:
    y, x = np.argwhere(bad)[0]
    return int(x), int(y)


def check_range(heights: HeightField, scale: HeightScale, tolerance: float = DEFAULT_TOLERANCE_MM, label: str = "") -> None:
    """
    Hard-fail if any height is outside [min, max] by more than tolerance.

    No clamping: a height out of range means the parameter combination
    produced a form that can't be represented, and the caller should know.
    """
    values = heights.values
    where = f" in {label} form" if label else ""

    nonfinite = ~np.isfinite(values)
    if nonfinite.any():
        x, y = _first_bad_pixel(nonfinite)
        raise OutOfRangeError(
            f"Non-finite height{where} at pixel ({x}, {y}): {values[y, x]}",
            pixel=(x, y), value=float(values[y, x]), bound=None,
        )

    low = values < scale.min_mm - tolerance
    if low.any():
        x, y = _first_bad_pixel(low)
        raise OutOfRangeError(
            f"Height{where} at pixel ({x}, {y}) is {values[y, x]:.6f} mm, "
            f"below the minimum {scale.min_mm:.6f} mm.\n"
            "Check punch-out depth / sheet thickness.",
            pixel=(x, y), value=float(values[y, x]), bound=scale.min_mm,
        )

    high = values > scale.max_mm + tolerance
    if high.any():
        x, y = _first_bad_pixel(high)
        raise OutOfRangeError(
            f"Height{where} at pixel ({x}, {y}) is {values[y, x]:.6f} mm, "
            f"above the maximum {scale.max_mm:.6f} mm.\n"
            "Check punch-out depth / sheet thickness.",
            pixel=(x, y), value=float(values[y, x]), bound=scale.max_mm,
        )


def quantize(heights: HeightField, scale: HeightScale, tolerance: float = DEFAULT_TOLERANCE_MM) -> QuantizedImage:
    check_range(heights, scale, tolerance)
    samples = scale.to_samples(heights.values)
    samples.setflags(write=False)
    return QuantizedImage(samples=samples, scale=scale)


def check_forms_overlap(forms: FormPair) -> None:
    """
    Hard-fail if the positive die never dips below the negative die's top.

    That happens when the sheet is thicker than the relief the fade field
    actually reaches: the punch can't push the sheet into anything, so the
    pair can't form the shape.
    """
    positive = forms.positive.values
    top = forms.negative.max_mm
    if positive.size and forms.positive.min_mm > top:
        y, x = np.unravel_index(int(np.argmin(positive)), positive.shape)
        raise OutOfRangeError(
            f"Positive form never reaches below the negative form: its lowest point "
            f"at pixel ({x}, {y}) is {positive[y, x]:.6f} mm, above the negative "
            f"form's highest point {top:.6f} mm.\n"
            f"Sheet thickness {forms.sheet_thickness_mm:.6f} mm is larger than the relief; "
            "increase punch-out depth or reduce sheet thickness.",
            pixel=(int(x), int(y)), value=float(positive[y, x]), bound=top,
        )


def quantize_pair(
    forms: FormPair,
    scale: HeightScale,
    tolerance: float = DEFAULT_TOLERANCE_MM,
) -> tuple[QuantizedImage, QuantizedImage]:
    """
    Quantize positive and negative with the same scale.

    Both forms are range-checked (and checked against each other) before
    either is converted, so on failure there is no half-finished output.
    """
    check_range(forms.positive, scale, tolerance, label="positive")
    check_range(forms.negative, scale, tolerance, label="negative")
    check_forms_overlap(forms)
    positive = quantize(forms.positive, scale, tolerance)
    negative = quantize(forms.negative, scale, tolerance)
    logger.debug("Quantized both forms at %.6g mm/step (%d bit)", scale.mm_per_step, scale.bit_depth)
    return positive, negative
