"""
Colour and tone filters.

Every filter takes an RGBA buffer and returns a new buffer of the same
size. Channel values are rounded and clamped to [0, 255]; alpha is left
untouched.
"""

import numpy as np
from typing import Optional, Union

from .utils import ensure_rgba, to_uint8, luminance


SEPIA_MATRIX = np.array([
    [0.393, 0.769, 0.189],
    [0.349, 0.686, 0.168],
    [0.272, 0.534, 0.131],
])

VINTAGE_GAINS = np.array([0.9, 0.8, 0.5])
VINTAGE_NOISE = 10.0

RED_EYE_RATIO = 1.4


def _with_rgb(image: np.ndarray, rgb: np.ndarray) -> np.ndarray:
    out = image.copy()
    out[..., :3] = to_uint8(rgb)
    return out


def grayscale(image: np.ndarray) -> np.ndarray:
    """Replace r, g and b with the Rec. 601 luma 0.299r + 0.587g + 0.114b."""
    image = ensure_rgba(image)
    y = luminance(image)
    return _with_rgb(image, np.repeat(y[..., None], 3, axis=2))


def sepia(image: np.ndarray) -> np.ndarray:
    """Classic sepia tone matrix, saturating at 255."""
    image = ensure_rgba(image)
    rgb = image[..., :3].astype(np.float64)
    toned = rgb @ SEPIA_MATRIX.T
    return _with_rgb(image, np.minimum(toned, 255.0))


def invert(image: np.ndarray) -> np.ndarray:
    """Photographic negative: c' = 255 - c."""
    image = ensure_rgba(image)
    out = image.copy()
    out[..., :3] = 255 - image[..., :3]
    return out


def vintage(
    image: np.ndarray,
    seed: Optional[Union[int, np.random.Generator]] = None
) -> np.ndarray:
    """
    Faded warm look: scale r/g/b by 0.9/0.8/0.5, then add grain.

    The grain is uniform noise in [-10, 10], drawn independently for each
    colour channel of each pixel.

    Args:
        image: RGBA buffer
        seed: Optional seed or numpy Generator. Without one the output is
            not reproducible.
    """
    image = ensure_rgba(image)
    rng = seed if isinstance(seed, np.random.Generator) else np.random.default_rng(seed)

    faded = to_uint8(image[..., :3].astype(np.float64) * VINTAGE_GAINS).astype(np.float64)
    noise = rng.uniform(-VINTAGE_NOISE, VINTAGE_NOISE, size=faded.shape)
    return _with_rgb(image, faded + noise)


def lighten(image: np.ndarray, intensity: float) -> np.ndarray:
    """Move every channel towards white: c + (255 - c) * k."""
    image = ensure_rgba(image)
    k = float(np.clip(intensity, 0.0, 1.0))
    rgb = image[..., :3].astype(np.float64)
    return _with_rgb(image, rgb + (255.0 - rgb) * k)


def darken(image: np.ndarray, intensity: float) -> np.ndarray:
    """Move every channel towards black: c * (1 - k)."""
    image = ensure_rgba(image)
    k = float(np.clip(intensity, 0.0, 1.0))
    rgb = image[..., :3].astype(np.float64)
    return _with_rgb(image, rgb * (1.0 - k))


def red_eye_reduction(image: np.ndarray, intensity: float) -> np.ndarray:
    """
    Neutralise strongly red pixels.

    A pixel is flagged when r > 1.4 g and r > 1.4 b. Flagged pixels get
    gray = (g + b) / 2 * k with r = gray and g = b = 0.8 * gray. Other
    pixels are returned unchanged.
    """
    image = ensure_rgba(image)
    k = float(np.clip(intensity, 0.0, 1.0))
    rgb = image[..., :3].astype(np.float64)
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]

    mask = (r > g * RED_EYE_RATIO) & (r > b * RED_EYE_RATIO)
    if not mask.any():
        return image.copy()

    gray = (g + b) / 2.0 * k
    corrected = rgb.copy()
    corrected[mask, 0] = gray[mask]
    corrected[mask, 1] = gray[mask] * 0.8
    corrected[mask, 2] = gray[mask] * 0.8
    return _with_rgb(image, corrected)


def pixelate(image: np.ndarray, block_size: int) -> np.ndarray:
    """
    Mosaic effect: each block_size x block_size cell takes its mean colour.

    Cells on the right and bottom edges may be partial.
    """
    image = ensure_rgba(image)
    block = int(block_size)
    if block < 1:
        raise ValueError(f"block_size must be >= 1, got {block_size}")
    if block == 1:
        return image.copy()

    h, w = image.shape[:2]
    rows = np.arange(0, h, block)
    cols = np.arange(0, w, block)

    # Block sums over the RGB channels via reduceat along both axes
    rgb = image[..., :3].astype(np.float64)
    sums = np.add.reduceat(np.add.reduceat(rgb, rows, axis=0), cols, axis=1)
    heights = np.diff(np.append(rows, h))
    widths = np.diff(np.append(cols, w))
    means = sums / (heights[:, None] * widths[None, :])[..., None]

    expanded = np.repeat(np.repeat(means, heights, axis=0), widths, axis=1)
    return _with_rgb(image, expanded)
