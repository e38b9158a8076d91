"""
Image resampling: nearest, bilinear, bicubic and Lanczos scaling.

For a destination pixel (x, y) the source coordinate is
(x * Ws / Wd, y * Hs / Hd). Every sampler clamps the source indices it
reads into the image, so border pixels are replicated rather than read
out of bounds.
"""

import numpy as np
from enum import Enum
from typing import Tuple

from .utils import ensure_rgba, to_uint8
from .convolution import smooth_flat_regions


class ScalingAlgorithm(str, Enum):
    """Interpolation used to compute destination pixels."""

    NEAREST = "nearest"
    BILINEAR = "bilinear"
    BICUBIC = "bicubic"
    LANCZOS = "lanczos"


class AntiAliasing(str, Enum):
    """Optional anti-aliasing pass around the scaling step."""

    NONE = "none"
    SSAA = "ssaa"
    MSAA = "msaa"


def target_size(width: int, height: int, scale: float) -> Tuple[int, int]:
    """Destination (width, height) for a scale factor, never below 1x1."""
    if scale <= 0:
        raise ValueError(f"Scale factor must be positive, got {scale}")
    return max(1, int(np.floor(width * scale))), max(1, int(np.floor(height * scale)))


def _source_coordinates(dst_len: int, src_len: int) -> np.ndarray:
    return np.arange(dst_len, dtype=np.float64) * (src_len / dst_len)


def bilinear_sample(image: np.ndarray, xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
    """
    Bilinear interpolation at arbitrary source coordinates.

    v = v00 (1-fx)(1-fy) + v10 fx (1-fy) + v01 (1-fx) fy + v11 fx fy

    Args:
        image: (H, W, C) array, any numeric dtype
        xs: Source x coordinates, any shape
        ys: Source y coordinates, same shape as xs

    Returns:
        float64 array of shape xs.shape + (C,)
    """
    h, w = image.shape[:2]
    data = image.astype(np.float64)

    x0 = np.floor(xs)
    y0 = np.floor(ys)
    fx = (xs - x0)[..., None]
    fy = (ys - y0)[..., None]

    x0i = np.clip(x0.astype(np.int64), 0, w - 1)
    x1i = np.clip(x0.astype(np.int64) + 1, 0, w - 1)
    y0i = np.clip(y0.astype(np.int64), 0, h - 1)
    y1i = np.clip(y0.astype(np.int64) + 1, 0, h - 1)

    v00 = data[y0i, x0i]
    v10 = data[y0i, x1i]
    v01 = data[y1i, x0i]
    v11 = data[y1i, x1i]

    return (
        v00 * (1 - fx) * (1 - fy) +
        v10 * fx * (1 - fy) +
        v01 * (1 - fx) * fy +
        v11 * fx * fy
    )


def cubic_interpolate(t, a, b, c, d):
    """
    1D cubic convolution through four samples, evaluated at t in [0, 1].

    t^3 (-a + 3b - 3c + d)/6 + t^2 (3a - 6b + 3c)/6 + t (-a + c)/2 + b
    """
    t = np.clip(t, 0.0, 1.0)
    return (
        t * t * t * (-a + 3 * b - 3 * c + d) / 6 +
        t * t * (3 * a - 6 * b + 3 * c) / 6 +
        t * (-a + c) / 2 +
        b
    )


def lanczos_kernel(x, a: int = 2):
    """
    Windowed sinc L(x) = sinc(x) * sinc(x / a) for |x| < a, else 0.

    L(0) is exactly 1 and L(+-a) is exactly 0.
    """
    scalar = np.ndim(x) == 0
    x_arr = np.atleast_1d(np.asarray(x, dtype=np.float64))
    out = np.zeros_like(x_arr)

    inside = np.abs(x_arr) < a
    nonzero = inside & (x_arr != 0)
    pix = np.pi * x_arr[nonzero]
    out[nonzero] = a * np.sin(pix) * np.sin(pix / a) / (pix * pix)
    out[x_arr == 0] = 1.0

    if scalar:
        return float(out[0])
    return out


def resize_nearest(image: np.ndarray, out_w: int, out_h: int) -> np.ndarray:
    """Nearest-neighbour resize using pixel centres."""
    image = ensure_rgba(image)
    h, w = image.shape[:2]
    xs = np.clip(np.floor((np.arange(out_w) + 0.5) * (w / out_w)).astype(np.int64), 0, w - 1)
    ys = np.clip(np.floor((np.arange(out_h) + 0.5) * (h / out_h)).astype(np.int64), 0, h - 1)
    return np.ascontiguousarray(image[ys[:, None], xs[None, :]])


def resize_bilinear(image: np.ndarray, out_w: int, out_h: int) -> np.ndarray:
    """Bilinear resize of all four channels."""
    image = ensure_rgba(image)
    h, w = image.shape[:2]
    xs = _source_coordinates(out_w, w)
    ys = _source_coordinates(out_h, h)
    grid_x, grid_y = np.meshgrid(xs, ys)
    return to_uint8(bilinear_sample(image, grid_x, grid_y))


def resize_bicubic(image: np.ndarray, out_w: int, out_h: int) -> np.ndarray:
    """
    Bicubic resize over a clamped 4x4 neighbourhood.

    Rows are interpolated first, then the column of row results, for each
    RGBA channel independently.
    """
    image = ensure_rgba(image)
    h, w = image.shape[:2]
    data = image.astype(np.float64)

    xs = _source_coordinates(out_w, w)
    px = np.floor(xs).astype(np.int64)
    fx = (xs - px)[None, :, None]
    cols = [np.clip(px + offset, 0, w - 1) for offset in (-1, 0, 1, 2)]
    rows_interp = cubic_interpolate(fx, *(data[:, c] for c in cols))

    ys = _source_coordinates(out_h, h)
    py = np.floor(ys).astype(np.int64)
    fy = (ys - py)[:, None, None]
    rows = [np.clip(py + offset, 0, h - 1) for offset in (-1, 0, 1, 2)]
    result = cubic_interpolate(fy, *(rows_interp[r] for r in rows))

    return to_uint8(result)


def _lanczos_taps(dst_len: int, src_len: int, a: int):
    coords = _source_coordinates(dst_len, src_len)
    base = np.floor(coords).astype(np.int64)
    taps = []
    for offset in range(-a + 1, a + 1):
        idx = base + offset
        valid = (idx >= 0) & (idx <= src_len - 1)
        weight = np.where(valid, lanczos_kernel(coords - idx, a), 0.0)
        taps.append((np.clip(idx, 0, src_len - 1), weight))
    return taps


def resize_lanczos(image: np.ndarray, out_w: int, out_h: int, a: int = 2) -> np.ndarray:
    """
    Lanczos resize with window radius a.

    The window [floor(s) - a + 1, floor(s) + a] is clipped to the image and
    the weighted sum is normalised by the weights actually used.
    """
    image = ensure_rgba(image)
    h, w = image.shape[:2]
    data = image.astype(np.float64)

    x_taps = _lanczos_taps(out_w, w, a)
    horizontal = sum(data[:, idx] * weight[None, :, None] for idx, weight in x_taps)
    x_weight = sum(weight for _, weight in x_taps)

    y_taps = _lanczos_taps(out_h, h, a)
    vertical = sum(horizontal[idx] * weight[:, None, None] for idx, weight in y_taps)
    y_weight = sum(weight for _, weight in y_taps)

    total = y_weight[:, None] * x_weight[None, :]
    total = np.where(np.abs(total) < 1e-12, 1.0, total)
    return to_uint8(vertical / total[..., None])


def resize(
    image: np.ndarray,
    out_w: int,
    out_h: int,
    algorithm: ScalingAlgorithm = ScalingAlgorithm.BILINEAR,
    lanczos_radius: int = 2
) -> np.ndarray:
    """Resize to an explicit size with the chosen algorithm."""
    algorithm = ScalingAlgorithm(algorithm)
    if out_w < 1 or out_h < 1:
        raise ValueError(f"Output size must be at least 1x1, got {out_w}x{out_h}")

    if algorithm == ScalingAlgorithm.NEAREST:
        return resize_nearest(image, out_w, out_h)
    if algorithm == ScalingAlgorithm.BILINEAR:
        return resize_bilinear(image, out_w, out_h)
    if algorithm == ScalingAlgorithm.BICUBIC:
        return resize_bicubic(image, out_w, out_h)
    return resize_lanczos(image, out_w, out_h, a=lanczos_radius)


def downsample_box(image: np.ndarray, factor: int) -> np.ndarray:
    """Average non-overlapping factor x factor blocks (dimensions must divide)."""
    image = ensure_rgba(image)
    h, w = image.shape[:2]
    if h % factor or w % factor:
        raise ValueError(f"Image {w}x{h} is not divisible by factor {factor}")
    blocks = image.astype(np.float64).reshape(h // factor, factor, w // factor, factor, 4)
    return to_uint8(blocks.mean(axis=(1, 3)))


def scale_image(
    image: np.ndarray,
    scale: float,
    algorithm: ScalingAlgorithm = ScalingAlgorithm.BILINEAR,
    anti_aliasing: AntiAliasing = AntiAliasing.NONE,
    lanczos_radius: int = 2,
    ssaa_factor: int = 2,
    msaa_edge_threshold: float = 30.0
) -> np.ndarray:
    """
    Scale an image by a factor.

    Args:
        image: RGBA buffer
        scale: Scale factor (1.0 = original size)
        algorithm: Interpolation algorithm
        anti_aliasing: NONE, SSAA (render at ssaa_factor x then box-average
            down) or MSAA (edge-preserving smoothing after scaling)
        lanczos_radius: Window radius for Lanczos
        ssaa_factor: Supersampling factor for SSAA
        msaa_edge_threshold: Edge threshold for MSAA smoothing

    Returns:
        Scaled RGBA buffer of size max(1, floor(W*scale)) x max(1, floor(H*scale))
    """
    image = ensure_rgba(image)
    anti_aliasing = AntiAliasing(anti_aliasing)
    h, w = image.shape[:2]
    out_w, out_h = target_size(w, h, scale)

    if anti_aliasing == AntiAliasing.SSAA:
        supersampled = resize(image, out_w * ssaa_factor, out_h * ssaa_factor, algorithm, lanczos_radius)
        return downsample_box(supersampled, ssaa_factor)

    scaled = resize(image, out_w, out_h, algorithm, lanczos_radius)
    if anti_aliasing == AntiAliasing.MSAA:
        return smooth_flat_regions(scaled, msaa_edge_threshold)
    return scaled
