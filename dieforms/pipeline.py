from __future__ import annotations

import logging
import time
from dataclasses import dataclass

import numpy as np

from .config import OUTPUT_BIT_DEPTH, THRESHOLD, Parameters
from .distance import DistanceField, compute_distance_field
from .fade import FadeProfile, HeightField, fade_heights
from .forms import FormPair, generate_forms
from .mask import Mask, classify
from .quantize import HeightScale, QuantizedImage, quantize_pair, scale_for

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DieForms:
    """Everything one run produces, stage by stage. All arrays are read-only."""

    params: Parameters
    mask: Mask
    distance: DistanceField
    heights: HeightField
    forms: FormPair
    scale: HeightScale
    positive: QuantizedImage
    negative: QuantizedImage


def search_bound_mm(params: Parameters) -> float:
    """
    How far the bounded distance search has to look.

    Heights saturate at the fade distance; one extra pixel keeps the cap
    strictly positive even with fade == 0, so the sign never gets lost.
    """
    return params.fade_distance_mm + 1.0 / params.pixels_per_mm


def run(
    pixels: np.ndarray,
    params: Parameters,
    threshold: float = THRESHOLD,
    profile: FadeProfile = FadeProfile.LINEAR,
    bit_depth: int = OUTPUT_BIT_DEPTH,
    method: str = "edt",
) -> DieForms:
    """
    pixels -> mask -> distance -> heights -> forms -> two quantized images.

    Either returns a complete result or raises; nothing partial comes out.
    """
    params.validate()
    scale = scale_for(params, bit_depth)

    t0 = time.perf_counter()
    mask = classify(pixels, threshold)
    logger.info(
        "Mask %dx%d: %d raised / %d background pixels",
        mask.width, mask.height, mask.raised_count, mask.background_count,
    )

    t1 = time.perf_counter()
    bound = search_bound_mm(params) if method == "neighbors" else None
    distance = compute_distance_field(mask, params.pixels_per_mm, max_distance_mm=bound, method=method)

    t2 = time.perf_counter()
    heights = fade_heights(distance, params.punch_out_depth_mm, params.fade_distance_mm, profile)
    forms = generate_forms(heights, params.sheet_thickness_mm).check_gap()

    t3 = time.perf_counter()
    positive, negative = quantize_pair(forms, scale)
    t4 = time.perf_counter()

    logger.info(
        "Timings: classify %.3fs, distance (%s) %.3fs, heights+forms %.3fs, quantize %.3fs",
        t1 - t0, method, t2 - t1, t3 - t2, t4 - t3,
    )
    logger.info(
        "Scale: %.4f..%.4f mm over 0..%d (%.6g mm/step)",
        scale.min_mm, scale.max_mm, scale.max_sample, scale.mm_per_step,
    )

    return DieForms(
        params=params,
        mask=mask,
        distance=distance,
        heights=heights,
        forms=forms,
        scale=scale,
        positive=positive,
        negative=negative,
    )
