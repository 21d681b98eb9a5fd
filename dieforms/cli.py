from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from . import config
from .config import Parameters
from .errors import DieFormsError
from .fade import FadeProfile
from .io import load_pixels, output_paths, save_outputs
from .pipeline import run

logger = logging.getLogger("dieforms")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="dieforms",
        description="Turn a black/white image into positive and negative stamping-die height maps.",
    )
    p.add_argument("input", type=Path, help="Input image (black = raised)")
    p.add_argument("--out-dir", type=Path, default=None, help="Where to write outputs (default: next to input)")
    p.add_argument("--pixels-per-mm", type=float, default=config.PIXELS_PER_MM)
    p.add_argument("--depth", type=float, default=config.PUNCH_OUT_DEPTH_MM, help="Punch-out depth (mm)")
    p.add_argument("--fade", type=float, default=config.FADE_DISTANCE_MM, help="Fade distance (mm)")
    p.add_argument("--thickness", type=float, default=config.SHEET_THICKNESS_MM, help="Sheet thickness (mm)")
    p.add_argument("--threshold", type=float, default=config.THRESHOLD, help="Luminance below this is raised (0..255)")
    p.add_argument("--profile", choices=[f.value for f in FadeProfile], default=FadeProfile.LINEAR.value)
    p.add_argument("--bit-depth", type=int, choices=(8, 16), default=config.OUTPUT_BIT_DEPTH)
    p.add_argument("--method", choices=("edt", "neighbors"), default="edt", help="Distance transform")
    verbosity = p.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true")
    verbosity.add_argument("-q", "--quiet", action="store_true")
    return p.parse_args(argv)


def print_settings(params: Parameters, args: argparse.Namespace) -> None:
    # Print out the "cross section recipe" so you can sanity check it
    print("=== Die form settings ===")
    print(f"Resolution:       {params.pixels_per_mm:.4f} px/mm ({params.dpi:.1f} DPI)")
    print(f"Punch-out depth:  {params.punch_out_depth_mm:.4f} mm")
    print(f"Fade distance:    {params.fade_distance_mm:.4f} mm ({params.fade_distance_px:.1f} px each side)")
    print(f"Sheet thickness:  {params.sheet_thickness_mm:.4f} mm")
    print(f"Fade profile:     {args.profile}")
    print(f"Output:           {args.bit_depth} bit, distance method={args.method}")
    print("=========================\n")


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.WARNING if args.quiet else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s | %(levelname)s | %(name)s | %(message)s")

    params = Parameters(
        pixels_per_mm=args.pixels_per_mm,
        punch_out_depth_mm=args.depth,
        fade_distance_mm=args.fade,
        sheet_thickness_mm=args.thickness,
    )
    if not args.quiet:
        print_settings(params, args)

    # Hard fail if input missing (no point continuing)
    pixels = load_pixels(args.input)

    try:
        result = run(
            pixels,
            params,
            threshold=args.threshold,
            profile=FadeProfile(args.profile),
            bit_depth=args.bit_depth,
            method=args.method,
        )
    except DieFormsError as e:
        logger.error("%s: %s", type(e).__name__, e)
        return 1

    out_positive, out_negative, out_scale = output_paths(args.input, args.out_dir)
    save_outputs(result.positive, result.negative, params, (out_positive, out_negative, out_scale))

    if not args.quiet:
        # Print final paths so you can copy/paste them
        print("\nOutputs:")
        print(f"  Positive form:  {out_positive.resolve()}")
        print(f"  Negative form:  {out_negative.resolve()}")
        print(f"  Height scale:   {out_scale.resolve()}")
        print(
            f"\nSample 0 = {result.scale.min_mm:.4f} mm, sample {result.scale.max_sample} = "
            f"{result.scale.max_mm:.4f} mm ({result.scale.mm_per_step:.6g} mm/step)."
        )
    return 0


if __name__ == "__main__":
    sys.exit(main())
