"""Shared fixtures for the PixelKit test suite."""

import numpy as np
import pytest

from tests.helpers import make_image


@pytest.fixture
def gradient_image():
    """16x12 image with distinct values in every channel."""
    h, w = 12, 16
    ys, xs = np.mgrid[0:h, 0:w]
    image = np.empty((h, w, 4), dtype=np.uint8)
    image[..., 0] = (xs * 16) % 256
    image[..., 1] = (ys * 20) % 256
    image[..., 2] = (xs * 7 + ys * 11) % 256
    image[..., 3] = 255
    return image


@pytest.fixture
def noise_image():
    rng = np.random.default_rng(1234)
    image = rng.integers(0, 256, size=(20, 24, 4), dtype=np.uint8)
    image[..., 3] = 255
    return image


@pytest.fixture
def gray_image():
    return make_image(10, 10, (100, 100, 100))
