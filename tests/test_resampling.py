"""Tests for image scaling."""

import numpy as np
import pytest

from pixelkit.image_processing import AntiAliasing, ScalingAlgorithm, lanczos_kernel, resize, scale_image
from pixelkit.image_processing.resampling import (
    bilinear_sample,
    cubic_interpolate,
    downsample_box,
    target_size,
)
from tests.helpers import make_image


@pytest.mark.parametrize("algorithm", list(ScalingAlgorithm))
def test_scale_one_reproduces_source(algorithm, noise_image):
    out = scale_image(noise_image, 1.0, algorithm=algorithm)
    assert np.array_equal(out, noise_image)


@pytest.mark.parametrize("algorithm", list(ScalingAlgorithm))
@pytest.mark.parametrize("scale", [0.3, 0.5, 1.7, 3.0])
def test_constant_image_stays_constant(algorithm, scale):
    image = make_image(10, 8, (30, 140, 250))
    out = scale_image(image, scale, algorithm=algorithm)
    assert np.all(out == image[0, 0])


def test_target_size():
    assert target_size(10, 5, 0.5) == (5, 2)
    assert target_size(3, 3, 0.1) == (1, 1)
    assert target_size(4, 6, 2.5) == (10, 15)


@pytest.mark.parametrize("scale", [0, -1.5])
def test_non_positive_scale_rejected(scale, gray_image):
    with pytest.raises(ValueError):
        scale_image(gray_image, scale)


def test_resize_rejects_empty_output(gray_image):
    with pytest.raises(ValueError):
        resize(gray_image, 0, 4)


def test_lanczos_kernel_values():
    assert lanczos_kernel(0) == 1.0
    assert lanczos_kernel(2, a=2) == 0.0
    assert lanczos_kernel(-2, a=2) == 0.0
    assert lanczos_kernel(3, a=3) == 0.0
    assert 0.0 < lanczos_kernel(0.5) < 1.0


def test_lanczos_kernel_vectorised():
    values = lanczos_kernel(np.array([-2.5, -1.0, 0.0, 0.5, 2.0]))
    assert values.shape == (5,)
    assert values[0] == 0.0 and values[-1] == 0.0
    assert values[2] == 1.0
    assert abs(values[1]) < 1e-12


def test_cubic_interpolate_endpoints():
    assert cubic_interpolate(0.0, 1.0, 5.0, 9.0, 2.0) == 5.0
    assert cubic_interpolate(-1.0, 1.0, 5.0, 9.0, 2.0) == 5.0
    assert cubic_interpolate(0.3, 7.0, 7.0, 7.0, 7.0) == pytest.approx(7.0)


def test_bilinear_sample_midpoint():
    image = np.array([[[0], [100]], [[100], [200]]], dtype=np.uint8)
    value = bilinear_sample(image, np.array([0.5]), np.array([0.5]))
    assert value[0, 0] == pytest.approx(100.0)


def test_bilinear_sample_clamps():
    image = np.array([[[10], [20]]], dtype=np.uint8)
    value = bilinear_sample(image, np.array([5.0, -3.0]), np.array([0.0, 0.0]))
    assert list(value[:, 0]) == [20.0, 10.0]


def test_nearest_uses_pixel_centres():
    image = np.zeros((1, 4, 4), dtype=np.uint8)
    image[0, :, 0] = [0, 10, 20, 30]
    image[..., 3] = 255
    out = resize(image, 2, 1, ScalingAlgorithm.NEAREST)
    # Destination centres 0.5 and 1.5 map to source 1 and 3
    assert list(out[0, :, 0]) == [10, 30]


def test_bilinear_upscale_interpolates():
    image = np.zeros((1, 2, 4), dtype=np.uint8)
    image[0, :, 0] = [0, 100]
    image[..., 3] = 255
    out = resize(image, 4, 1, ScalingAlgorithm.BILINEAR)
    assert list(out[0, :, 0]) == [0, 50, 100, 100]


def test_downsample_box():
    image = np.zeros((2, 2, 4), dtype=np.uint8)
    image[..., 0] = [[0, 100], [100, 200]]
    out = downsample_box(image, 2)
    assert out.shape == (1, 1, 4)
    assert out[0, 0, 0] == 100


@pytest.mark.parametrize("anti_aliasing", list(AntiAliasing))
def test_anti_aliasing_output_size(anti_aliasing, noise_image):
    out = scale_image(noise_image, 0.5, anti_aliasing=anti_aliasing)
    assert out.shape == (10, 12, 4)
    assert out.dtype == np.uint8


def test_ssaa_on_constant_image():
    image = make_image(8, 8, (90, 90, 90))
    out = scale_image(image, 0.5, ScalingAlgorithm.BICUBIC, AntiAliasing.SSAA)
    assert np.all(out == image[0, 0])


def test_scale_does_not_mutate_input(noise_image):
    original = noise_image.copy()
    scale_image(noise_image, 2.0, ScalingAlgorithm.LANCZOS)
    assert np.array_equal(noise_image, original)


def _red_row(values):
    image = np.zeros((1, len(values), 4), dtype=np.uint8)
    image[0, :, 0] = values
    image[..., 3] = 255
    return image


def test_cubic_interpolate_midpoint():
    # t^3 (-0 + 120 - 360 + 200)/6 + t^2 (0 - 240 + 360)/6 + t (120 - 0)/2 + 40 at t = 0.5
    assert cubic_interpolate(0.5, 0.0, 40.0, 120.0, 200.0) == pytest.approx(74.1666667)


def test_bicubic_upscale_of_ramp():
    out = resize(_red_row([0, 40, 120, 200]), 8, 1, ScalingAlgorithm.BICUBIC)
    # Odd columns fall halfway between samples; the last one overshoots
    assert list(out[0, :, 0]) == [0, 15, 40, 74, 120, 158, 200, 212]
    assert np.all(out[..., 3] == 255)


def test_bicubic_interpolates_columns_too():
    column = np.transpose(_red_row([0, 40, 120, 200]), (1, 0, 2))
    out = resize(column, 1, 8, ScalingAlgorithm.BICUBIC)
    assert list(out[:, 0, 0]) == [0, 15, 40, 74, 120, 158, 200, 212]


def test_lanczos_upscale_normalises_clipped_window():
    out = resize(_red_row([0, 90, 180]), 6, 1, ScalingAlgorithm.LANCZOS, lanczos_radius=2)

    # Destination x=1 reads s=0.5: tap -1 is outside, taps 0..2 sit at 0.5, -0.5, -1.5
    w = lanczos_kernel(np.array([0.5, -0.5, -1.5]))
    left = np.dot(w, [0, 90, 180]) / w.sum()
    # Destination x=5 reads s=2.5: only taps 1 and 2 are inside
    w = lanczos_kernel(np.array([1.5, 0.5]))
    right = np.dot(w, [90, 180]) / w.sum()

    assert int(np.rint(left)) == 37
    assert int(np.rint(right)) == 191
    assert list(out[0, :, 0]) == [0, 37, 90, 143, 180, 191]
