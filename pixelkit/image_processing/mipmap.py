"""
Mipmap chain construction for trilinear filtering.
"""

import numpy as np
from typing import List

from .utils import ensure_rgba, to_uint8


def downsample_half(image: np.ndarray) -> np.ndarray:
    """
    Next mip level: 2x2 box average, size max(1, floor(w/2)) x max(1, floor(h/2)).

    The second sample in each direction is clamped to the last row/column,
    so a 1-pixel-wide edge averages with itself.
    """
    h, w = image.shape[:2]
    next_w = max(1, w // 2)
    next_h = max(1, h // 2)

    xs = np.arange(next_w) * 2
    ys = np.arange(next_h) * 2
    xs1 = np.minimum(xs + 1, w - 1)
    ys1 = np.minimum(ys + 1, h - 1)

    data = image.astype(np.float64)
    total = (
        data[ys[:, None], xs[None, :]] +
        data[ys[:, None], xs1[None, :]] +
        data[ys1[:, None], xs[None, :]] +
        data[ys1[:, None], xs1[None, :]]
    )
    return to_uint8(total / 4.0)


def build_mipmap_chain(image: np.ndarray) -> List[np.ndarray]:
    """
    Build the full mip chain down to 1x1.

    Level 0 is the source itself; each further level halves both
    dimensions (floored, minimum 1).
    """
    level = ensure_rgba(image)
    chain = [level]
    while level.shape[0] > 1 or level.shape[1] > 1:
        level = downsample_half(level)
        chain.append(level)
    return chain
