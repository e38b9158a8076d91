"""
Convolution filters: edge detection, emboss, sharpen and blurs.

Two different border policies live here and must not be mixed up:

- The 3x3 kernels (Sobel, emboss, sharpen) only touch interior pixels.
  Pixels within one pixel of the edge keep their source value, except for
  Sobel whose output is an edge map and marks them as "no edge".
- The box blur covers every pixel; neighbours outside the image are
  clamped to the nearest edge pixel.
"""

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from .utils import ensure_rgba, to_uint8, round_half_up, luminance


SOBEL_X = np.array([[-1, 0, 1], [-2, 0, 2], [-1, 0, 1]], dtype=np.float64)
SOBEL_Y = np.array([[-1, -2, -1], [0, 0, 0], [1, 2, 1]], dtype=np.float64)
EMBOSS_KERNEL = np.array([[-2, -1, 0], [-1, 1, 1], [0, 1, 2]], dtype=np.float64)
SHARPEN_KERNEL = np.array([[0, -1, 0], [-1, 5, -1], [0, -1, 0]], dtype=np.float64)

EMBOSS_OFFSET = 128.0


def _has_interior(image: np.ndarray) -> bool:
    return image.shape[0] >= 3 and image.shape[1] >= 3


def correlate3x3(channel: np.ndarray, kernel: np.ndarray) -> np.ndarray:
    """
    Apply a 3x3 kernel to the interior of a 2D array.

    The kernel is laid over the neighbourhood as written (no flip).

    Returns:
        Array of shape (H - 2, W - 2)
    """
    windows = sliding_window_view(channel.astype(np.float64), (3, 3))
    return np.einsum('ijkl,kl->ij', windows, kernel)


def _gray_levels(image: np.ndarray) -> np.ndarray:
    return round_half_up(luminance(image))


def sobel_edges(image: np.ndarray, threshold: float) -> np.ndarray:
    """
    Binary Sobel edge map.

    Args:
        image: RGBA buffer
        threshold: Gradient magnitude above which a pixel is an edge

    Returns:
        RGBA buffer with r = g = b = 255 on edges, 0 elsewhere, alpha 255
    """
    image = ensure_rgba(image)
    h, w = image.shape[:2]
    out = np.zeros((h, w, 4), dtype=np.uint8)
    out[..., 3] = 255

    if not _has_interior(image):
        return out

    gray = _gray_levels(image)
    gx = correlate3x3(gray, SOBEL_X)
    gy = correlate3x3(gray, SOBEL_Y)
    magnitude = np.sqrt(gx * gx + gy * gy)

    edges = np.where(magnitude > threshold, 255, 0).astype(np.uint8)
    out[1:-1, 1:-1, :3] = edges[..., None]
    return out


def emboss(image: np.ndarray) -> np.ndarray:
    """Grayscale relief: emboss kernel response shifted by 128."""
    image = ensure_rgba(image)
    out = image.copy()

    if not _has_interior(image):
        return out

    relief = correlate3x3(_gray_levels(image), EMBOSS_KERNEL) + EMBOSS_OFFSET
    out[1:-1, 1:-1, :3] = to_uint8(relief)[..., None]
    out[1:-1, 1:-1, 3] = 255
    return out


def sharpen(image: np.ndarray, intensity: float) -> np.ndarray:
    """
    Laplacian sharpen blended with the original.

    out = orig * (1 - k) + sharpened * k, where sharpened is the clamped
    response of [[0,-1,0],[-1,5,-1],[0,-1,0]] on each colour channel.
    """
    image = ensure_rgba(image)
    k = float(np.clip(intensity, 0.0, 1.0))

    sharpened = image[..., :3].copy()
    if _has_interior(image):
        for c in range(3):
            sharpened[1:-1, 1:-1, c] = to_uint8(correlate3x3(image[..., c], SHARPEN_KERNEL))

    blended = image[..., :3].astype(np.float64) * (1.0 - k) + sharpened.astype(np.float64) * k
    out = image.copy()
    out[..., :3] = to_uint8(blended)
    return out


def _window_sums(values: np.ndarray, size: int, axis: int) -> np.ndarray:
    """Sums over a sliding window of `size` along `axis` (valid region only)."""
    cumsum = np.cumsum(values, axis=axis)
    zero_shape = list(values.shape)
    zero_shape[axis] = 1
    cumsum = np.concatenate([np.zeros(zero_shape, dtype=cumsum.dtype), cumsum], axis=axis)
    upper = np.take(cumsum, np.arange(size, cumsum.shape[axis]), axis=axis)
    lower = np.take(cumsum, np.arange(0, cumsum.shape[axis] - size), axis=axis)
    return upper - lower


def box_blur(image: np.ndarray, radius: float) -> np.ndarray:
    """
    Mean filter over a (2r + 1) x (2r + 1) neighbourhood, r = floor(radius).

    Neighbour coordinates are clamped into the image, so the filter is
    defined for every pixel and a uniform image stays uniform. Alpha is
    copied from the source.
    """
    image = ensure_rgba(image)
    r = int(np.floor(radius))
    if r <= 0:
        return image.copy()

    size = 2 * r + 1
    padded = np.pad(image[..., :3].astype(np.int64), ((r, r), (r, r), (0, 0)), mode='edge')
    sums = _window_sums(_window_sums(padded, size, axis=0), size, axis=1)

    out = image.copy()
    out[..., :3] = to_uint8(sums / float(size * size))
    return out


def box_blur_clipped(image: np.ndarray, radius: int) -> np.ndarray:
    """
    Mean filter that skips neighbours outside the buffer.

    Used by the retouch blur brush, where the buffer is the brush region
    and pixels beyond it must not contribute. All four channels are
    averaged.
    """
    image = ensure_rgba(image)
    r = int(radius)
    if r <= 0:
        return image.copy()

    size = 2 * r + 1
    padded = np.pad(image.astype(np.int64), ((r, r), (r, r), (0, 0)), mode='constant')
    ones = np.pad(np.ones(image.shape[:2], dtype=np.int64), ((r, r), (r, r)), mode='constant')

    sums = _window_sums(_window_sums(padded, size, axis=0), size, axis=1)
    counts = _window_sums(_window_sums(ones, size, axis=0), size, axis=1)
    return to_uint8(sums / counts[..., None].astype(np.float64))


def unsharp_mask(
    image: np.ndarray,
    amount: float,
    radius: float,
    threshold: float
) -> np.ndarray:
    """
    Unsharp masking against a box blur.

    diff = orig - box_blur(orig, radius). When |diff| exceeds the threshold
    on any colour channel of a pixel, that pixel becomes
    clamp(orig + diff * amount); otherwise it is unchanged.

    Args:
        image: RGBA buffer
        amount: Strength (1.0 = 100 %)
        radius: Blur radius (floored to an integer)
        threshold: Minimum difference, in channel levels, to sharpen
    """
    image = ensure_rgba(image)
    blurred = box_blur(image, radius)

    orig = image[..., :3].astype(np.float64)
    diff = orig - blurred[..., :3].astype(np.float64)
    mask = (np.abs(diff) > threshold).any(axis=2)

    out = image.copy()
    if mask.any():
        boosted = to_uint8(orig + diff * amount)
        out[mask, :3] = boosted[mask]
    return out


def smooth_flat_regions(image: np.ndarray, edge_threshold: float = 30.0) -> np.ndarray:
    """
    Edge-preserving smoothing used for multisample anti-aliasing.

    Interior pixels whose mean absolute difference to their four direct
    neighbours (red channel) is at most `edge_threshold` are replaced by
    the 3x3 mean of their colour channels. Edges are kept sharp.
    """
    image = ensure_rgba(image)
    out = image.copy()
    if not _has_interior(image):
        return out

    red = image[..., 0].astype(np.float64)
    centre = red[1:-1, 1:-1]
    gradient = (
        np.abs(centre - red[1:-1, :-2]) +
        np.abs(centre - red[1:-1, 2:]) +
        np.abs(centre - red[:-2, 1:-1]) +
        np.abs(centre - red[2:, 1:-1])
    ) / 4.0
    flat = gradient <= edge_threshold

    means = np.stack(
        [correlate3x3(image[..., c], np.full((3, 3), 1.0 / 9.0)) for c in range(3)],
        axis=2
    )
    interior = out[1:-1, 1:-1, :3]
    interior[flat] = to_uint8(means)[flat]
    return out
