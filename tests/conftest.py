"""Shared synthetic masks and images for the dieforms tests."""
import numpy as np
import pytest

from dieforms.mask import Mask


def square_image(size: int, start: int, stop: int) -> np.ndarray:
    """White (255) uint8 image with a black square covering rows/cols start..stop-1."""
    img = np.full((size, size), 255, dtype=np.uint8)
    img[start:stop, start:stop] = 0
    return img


def random_mask(shape, seed: int, density: float = 0.4) -> Mask:
    """Random two-class mask, guaranteed to contain both classes."""
    rng = np.random.default_rng(seed)
    raised = rng.random(shape) < density
    raised[0, 0] = True
    raised[-1, -1] = False
    return Mask(raised)


@pytest.fixture
def square_20():
    """20x20 image, 10x10 black square at rows/cols 5..14."""
    return square_image(20, 5, 15)


@pytest.fixture
def square_mask(square_20):
    return Mask(square_20 < 128)


@pytest.fixture
def make_square():
    return square_image


@pytest.fixture
def make_random_mask():
    return random_mask
