"""Test helpers."""

import numpy as np


def make_image(height, width, rgb, alpha=255):
    """Uniform RGBA image."""
    image = np.empty((height, width, 4), dtype=np.uint8)
    image[..., :3] = rgb
    image[..., 3] = alpha
    return image
