"""End-to-end tests for the height-field pipeline (dieforms.pipeline).

Scenarios:
    - 3x3 raised square in a 10x10 image: gap invariant everywhere
    - Large square: flat top at full depth, flat background at 0
    - fade == 0: only two sample values per output
    - Re-running gives bit-identical outputs
    - Bounded neighbor search gives the same forms as the exact transform

Run: pytest tests/test_pipeline.py -v
"""
import numpy as np
import pytest

from dieforms.config import Parameters
from dieforms.errors import InvalidInputError, InvalidParameterError, OutOfRangeError
from dieforms.fade import FadeProfile
from dieforms.pipeline import run, search_bound_mm


@pytest.fixture
def small_params():
    return Parameters(pixels_per_mm=1.0, punch_out_depth_mm=2.0, fade_distance_mm=3.0, sheet_thickness_mm=0.5)


class TestScenarios:
    def test_three_by_three_square(self, make_square, small_params):
        img = make_square(10, 4, 7)
        result = run(img, small_params)

        np.testing.assert_allclose(result.forms.gap(), 0.5, atol=1e-12)
        # center is 2 px from the background -> d = 1.5 mm -> t = 0.75
        assert result.heights.values[5, 5] == pytest.approx(1.5, abs=1e-5)
        assert result.heights.values[5, 5] == result.heights.values.max()
        assert result.positive.samples.shape == (10, 10)
        assert result.negative.samples.shape == (10, 10)

    def test_large_square_is_flat(self, make_square, small_params):
        img = make_square(40, 10, 30)
        result = run(img, small_params)
        h = result.heights.values
        assert h[19, 19] == 2.0
        assert h[0, 0] == 0.0
        assert result.forms.positive.values[19, 19] == 2.5
        assert result.forms.negative.values[0, 0] == 0.0
        # full-range samples on both ends of the shared scale
        assert result.positive.samples.max() == result.scale.max_sample
        assert result.negative.samples.min() == 0

    def test_zero_fade_is_a_step(self, make_square):
        params = Parameters(pixels_per_mm=2.0, punch_out_depth_mm=1.0, fade_distance_mm=0.0, sheet_thickness_mm=0.3)
        result = run(make_square(24, 6, 18), params, bit_depth=8)
        assert len(np.unique(result.positive.samples)) == 2
        assert len(np.unique(result.negative.samples)) == 2

    def test_decoded_gap_within_one_step(self, make_square, small_params):
        result = run(make_square(20, 5, 15), small_params, bit_depth=8)
        gap = result.positive.to_mm() - result.negative.to_mm()
        assert np.abs(gap - 0.5).max() <= result.scale.mm_per_step

    def test_rgb_input(self, make_square, small_params):
        gray = make_square(20, 5, 15)
        rgb = np.stack([gray, gray, gray], axis=2)
        a = run(gray, small_params)
        b = run(rgb, small_params)
        np.testing.assert_array_equal(a.positive.samples, b.positive.samples)


class TestDeterminism:
    @pytest.mark.parametrize("profile", list(FadeProfile))
    def test_idempotent(self, make_square, small_params, profile):
        img = make_square(30, 8, 21)
        first = run(img, small_params, profile=profile)
        second = run(img, small_params, profile=profile)
        assert np.array_equal(first.positive.samples, second.positive.samples)
        assert np.array_equal(first.negative.samples, second.negative.samples)

    def test_neighbors_method_matches_edt(self, make_square, small_params):
        img = make_square(30, 8, 21)
        img[12:16, 2:6] = 0
        exact = run(img, small_params, method="edt")
        bounded = run(img, small_params, method="neighbors")
        np.testing.assert_allclose(bounded.heights.values, exact.heights.values, atol=1e-5)
        diff = bounded.positive.samples.astype(int) - exact.positive.samples.astype(int)
        assert np.abs(diff).max() <= 1

    def test_search_bound_positive_with_zero_fade(self):
        params = Parameters(pixels_per_mm=4.0, fade_distance_mm=0.0)
        assert search_bound_mm(params) == pytest.approx(0.25)


class TestFailures:
    def test_degenerate_image(self, small_params):
        with pytest.raises(InvalidInputError):
            run(np.full((5, 5), 255, dtype=np.uint8), small_params)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"pixels_per_mm": 0.0},
            {"punch_out_depth_mm": -1.0},
            {"fade_distance_mm": -0.1},
            {"sheet_thickness_mm": float("nan")},
        ],
    )
    def test_bad_parameters(self, make_square, kwargs):
        with pytest.raises(InvalidParameterError):
            run(make_square(10, 3, 7), Parameters(**kwargs))

    def test_sheet_thicker_than_depth(self, make_square):
        params = Parameters(pixels_per_mm=1.0, punch_out_depth_mm=0.5, fade_distance_mm=2.0, sheet_thickness_mm=2.0)
        with pytest.raises(OutOfRangeError, match="larger than the relief") as exc:
            run(make_square(16, 4, 12), params)
        # lowest point of the positive form is the flat background corner
        assert exc.value.value == pytest.approx(2.0)
        assert exc.value.bound == pytest.approx(0.5)
        assert exc.value.pixel == (0, 0)

    def test_sheet_equal_to_depth_is_fine(self, make_square):
        params = Parameters(pixels_per_mm=1.0, punch_out_depth_mm=0.5, fade_distance_mm=2.0, sheet_thickness_mm=0.5)
        result = run(make_square(16, 4, 12), params)
        np.testing.assert_allclose(result.forms.gap(), 0.5, atol=1e-12)
