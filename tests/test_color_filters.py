"""Tests for the colour and tone filters."""

import numpy as np
import pytest

from pixelkit.image_processing import (
    ImageNotLoadedError,
    darken,
    grayscale,
    invert,
    lighten,
    pixelate,
    red_eye_reduction,
    sepia,
    vintage,
)
from tests.helpers import make_image


def test_grayscale_is_idempotent(noise_image):
    once = grayscale(noise_image)
    assert np.array_equal(grayscale(once), once)


def test_grayscale_sets_equal_channels(gradient_image):
    out = grayscale(gradient_image)
    assert np.array_equal(out[..., 0], out[..., 1])
    assert np.array_equal(out[..., 1], out[..., 2])
    assert np.array_equal(out[..., 3], gradient_image[..., 3])


def test_grayscale_weights():
    out = grayscale(make_image(1, 1, (255, 0, 0)))
    assert out[0, 0, 0] == 76  # 0.299 * 255 = 76.245


def test_invert_is_an_involution(noise_image):
    assert np.array_equal(invert(invert(noise_image)), noise_image)


def test_invert_keeps_alpha():
    image = make_image(2, 2, (10, 20, 30), alpha=77)
    out = invert(image)
    assert tuple(out[0, 0]) == (245, 235, 225, 77)


def test_sepia_saturates_white():
    out = sepia(make_image(1, 1, (255, 255, 255)))
    assert tuple(out[0, 0]) == (255, 255, 239, 255)


def test_filters_do_not_mutate_input(gradient_image):
    original = gradient_image.copy()
    for kernel in (grayscale, sepia, invert):
        kernel(gradient_image)
    lighten(gradient_image, 0.5)
    assert np.array_equal(gradient_image, original)


def test_vintage_is_reproducible_with_seed(noise_image):
    assert np.array_equal(vintage(noise_image, seed=7), vintage(noise_image, seed=7))


def test_vintage_accepts_generator(noise_image):
    a = vintage(noise_image, seed=np.random.default_rng(3))
    b = vintage(noise_image, seed=np.random.default_rng(3))
    assert np.array_equal(a, b)


def test_vintage_noise_is_bounded():
    image = make_image(30, 30, (128, 128, 128))
    out = vintage(image, seed=1).astype(np.int16)
    faded = np.array([115, 102, 64], dtype=np.int16)
    assert np.abs(out[..., :3] - faded).max() <= 10
    assert np.all(out[..., 3] == 255)


def test_vintage_noise_differs_per_channel():
    image = make_image(30, 30, (128, 128, 128))
    out = vintage(image, seed=5).astype(np.int16)
    offsets = out[..., :3] - np.array([115, 102, 64])
    assert not np.array_equal(offsets[..., 0], offsets[..., 1])


@pytest.mark.parametrize("kernel", [lighten, darken])
def test_tone_with_zero_intensity_is_identity(kernel, noise_image):
    assert np.array_equal(kernel(noise_image, 0.0), noise_image)


def test_lighten_full_gives_white(noise_image):
    out = lighten(noise_image, 1.0)
    assert np.all(out[..., :3] == 255)


def test_darken_full_gives_black(noise_image):
    out = darken(noise_image, 1.0)
    assert np.all(out[..., :3] == 0)
    assert np.array_equal(out[..., 3], noise_image[..., 3])


def test_lighten_half():
    out = lighten(make_image(1, 1, (100, 0, 255)), 0.5)
    assert tuple(out[0, 0, :3]) == (178, 128, 255)  # 177.5 rounds to even


def test_red_eye_reduction_targets_red_pixels():
    image = make_image(1, 2, (100, 100, 100))
    image[0, 0, :3] = (200, 50, 50)
    out = red_eye_reduction(image, 1.0)
    assert tuple(out[0, 0, :3]) == (50, 40, 40)
    assert tuple(out[0, 1, :3]) == (100, 100, 100)


def test_red_eye_ratio_is_strict():
    # r == 1.4 g is not red enough
    image = make_image(1, 1, (140, 100, 50))
    assert np.array_equal(red_eye_reduction(image, 1.0), image)


def test_pixelate_blocks_are_uniform(gradient_image):
    out = pixelate(gradient_image, 4)
    assert out.shape == gradient_image.shape
    block = out[0:4, 4:8, :3]
    assert np.all(block == block[0, 0])
    expected = gradient_image[0:4, 4:8, :3].astype(np.float64).mean(axis=(0, 1))
    assert np.allclose(block[0, 0], np.rint(expected))


def test_pixelate_partial_edge_cells():
    image = np.zeros((5, 5, 4), dtype=np.uint8)
    image[..., 3] = 255
    image[4, 4, :3] = 200
    out = pixelate(image, 2)
    assert out.shape == (5, 5, 4)
    assert tuple(out[4, 4, :3]) == (200, 200, 200)
    assert tuple(out[3, 3, :3]) == (0, 0, 0)


def test_pixelate_rejects_bad_block():
    with pytest.raises(ValueError):
        pixelate(make_image(2, 2, (0, 0, 0)), 0)


def test_missing_image_raises():
    with pytest.raises(ImageNotLoadedError):
        grayscale(None)
