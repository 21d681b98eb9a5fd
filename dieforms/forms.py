from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np

from .errors import InvalidParameterError, OutOfRangeError
from .fade import HeightField

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FormPair:
    """
    The two die surfaces, in mm above a shared datum.

    positive - negative == sheet_thickness_mm at every pixel.
    """

    positive: HeightField
    negative: HeightField
    sheet_thickness_mm: float

    def gap(self) -> np.ndarray:
        return self.positive.values - self.negative.values

    def check_gap(self, atol: float = 1e-9) -> "FormPair":
        """Raise if the two surfaces don't leave exactly one sheet thickness between them."""
        err = np.abs(self.gap() - self.sheet_thickness_mm)
        if not err.size:
            return self
        # rounding in (base + t) - base grows with the magnitude of the heights
        atol = atol + 8 * float(np.spacing(np.abs(self.positive.values).max()))
        if float(err.max()) > atol:
            y, x = np.unravel_index(int(np.argmax(err)), err.shape)
            raise OutOfRangeError(
                f"Gap between forms at pixel ({x}, {y}) is {float(self.gap()[y, x]):.6f} mm, "
                f"expected {self.sheet_thickness_mm:.6f} mm.",
                pixel=(int(x), int(y)),
                value=float(self.gap()[y, x]),
                bound=self.sheet_thickness_mm,
            )
        return self


def generate_forms(heights: HeightField, sheet_thickness_mm: float) -> FormPair:
    """
    Split the base height field into the two die surfaces.

    Vertical-offset model: the sheet lies on the negative form, the positive
    form sits one sheet thickness above it. At the feature sizes this tool is
    for, that's close enough to a true normal offset.

      negative = base
      positive = base + thickness

    Nothing gets clipped here. If that pushes anything outside what the
    output scale can hold, the quantizer says so.
    """
    if not (sheet_thickness_mm >= 0 and math.isfinite(sheet_thickness_mm)):
        raise InvalidParameterError(f"sheet_thickness_mm must be >= 0, got {sheet_thickness_mm}")

    base = heights.values
    positive = base + float(sheet_thickness_mm)
    negative = base.copy()
    positive.setflags(write=False)
    negative.setflags(write=False)

    forms = FormPair(
        positive=HeightField(positive),
        negative=HeightField(negative),
        sheet_thickness_mm=float(sheet_thickness_mm),
    )
    logger.debug(
        "Forms: positive %.4f..%.4f mm, negative %.4f..%.4f mm",
        forms.positive.min_mm, forms.positive.max_mm, forms.negative.min_mm, forms.negative.max_mm,
    )
    return forms
