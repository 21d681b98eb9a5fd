"""Tests for the fade profile mapper (dieforms.fade).

Verifies:
    - Flat top / flat background outside the fade band (exact values)
    - Linear and cosine ramps are monotone and continuous
    - fade == 0 gives a step, depth == 0 gives all zeros

Run: pytest tests/test_fade.py -v
"""
import numpy as np
import pytest

from dieforms.distance import DistanceField
from dieforms.errors import InvalidParameterError
from dieforms.fade import FadeProfile, fade_heights


def field_of(values) -> DistanceField:
    return DistanceField(values=np.asarray(values, dtype=float).reshape(1, -1), pixels_per_mm=1.0)


class TestLinear:
    def test_known_heights(self):
        field = field_of([-5.0, -3.0, -1.5, 0.5, 1.5, 3.0, 5.0])
        h = fade_heights(field, punch_out_depth_mm=2.0, fade_distance_mm=3.0).values[0]
        np.testing.assert_allclose(h, [0.0, 0.0, 0.5, 2.0 * 3.5 / 6.0, 1.5, 2.0, 2.0])

    def test_saturation_is_exact(self):
        d = np.linspace(-10, 10, 201)
        h = fade_heights(field_of(d), 2.0, 3.0).values[0]
        assert np.all(h[d >= 3.0] == 2.0)
        assert np.all(h[d <= -3.0] == 0.0)

    def test_continuous_at_fade_distance(self):
        eps = 1e-9
        h = fade_heights(field_of([3.0 - eps, 3.0, -3.0 + eps, -3.0]), 2.0, 3.0).values[0]
        assert h[0] == pytest.approx(h[1], abs=1e-8)
        assert h[2] == pytest.approx(h[3], abs=1e-8)

    def test_edge_is_half_depth(self):
        # +-0.5 px around the edge average out to half depth
        h = fade_heights(field_of([-0.5, 0.5]), 2.0, 3.0).values[0]
        assert h.mean() == pytest.approx(1.0)


class TestProfiles:
    @pytest.mark.parametrize("profile", list(FadeProfile))
    def test_monotone(self, profile):
        d = np.linspace(-5, 5, 101)
        h = fade_heights(field_of(d), 1.5, 2.0, profile).values[0]
        assert np.all(np.diff(h) >= 0)
        assert h[0] == 0.0
        assert h[-1] == 1.5

    def test_cosine_midpoint_and_shape(self):
        h = fade_heights(field_of([-1.0, 0.0, 1.0]), 2.0, 2.0, FadeProfile.COSINE).values[0]
        # t = 0.25, 0.5, 0.75
        np.testing.assert_allclose(h, [2.0 * (1 - np.cos(np.pi / 4)) / 2, 1.0, 2.0 * (1 - np.cos(3 * np.pi / 4)) / 2])

    def test_profile_callable(self):
        t = np.array([0.0, 0.5, 1.0])
        np.testing.assert_allclose(FadeProfile.LINEAR(t), t)
        np.testing.assert_allclose(FadeProfile.COSINE(t), [0.0, 0.5, 1.0])


class TestDegenerateParameters:
    def test_zero_fade_is_step(self):
        h = fade_heights(field_of([-4.0, -0.5, 0.5, 4.0]), 2.0, 0.0).values[0]
        assert h.tolist() == [0.0, 0.0, 2.0, 2.0]

    def test_zero_depth_is_flat(self):
        h = fade_heights(field_of([-4.0, -0.5, 0.5, 4.0]), 0.0, 3.0).values
        assert np.all(h == 0.0)

    def test_negative_values_rejected(self):
        with pytest.raises(InvalidParameterError):
            fade_heights(field_of([1.0, -1.0]), -1.0, 3.0)
        with pytest.raises(InvalidParameterError):
            fade_heights(field_of([1.0, -1.0]), 1.0, -3.0)

    def test_read_only(self):
        heights = fade_heights(field_of([1.0, -1.0]), 1.0, 1.0)
        with pytest.raises(ValueError):
            heights.values[0, 0] = 0.0
