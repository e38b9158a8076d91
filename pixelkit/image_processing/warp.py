"""
Affine warping with bilinear or mipmapped trilinear filtering, and rotation.

Warps use backward mapping: every destination pixel is pushed through the
inverse matrix and the source is sampled there. Whether to use plain
bilinear filtering or trilinear filtering is decided once per transform by
comparing the areas of the source and destination triangles. Rotation
is a plain OpenCV affine warp onto a canvas that fits the rotated image.
"""

import cv2
import numpy as np
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from pixelkit.utils.logger import get_logger
from .affine import Point, affine_or_identity, triangle_area
from .mipmap import build_mipmap_chain
from .resampling import bilinear_sample
from .utils import ensure_rgba, to_uint8

logger = get_logger(__name__)


class FilterMode(str, Enum):
    """Sampler used for a warp."""

    BILINEAR = "bilinear"
    TRILINEAR = "trilinear"


def mip_level_for(inverse: np.ndarray, num_levels: int) -> float:
    """
    Level of detail for a transform.

    scale = sqrt(m00^2 + m01^2 + m10^2 + m11^2) / 2 over the inverse matrix,
    level = log2(scale) clamped to [0, num_levels - 1].
    """
    m = np.asarray(inverse, dtype=np.float64)
    scale = np.sqrt(m[0, 0] ** 2 + m[0, 1] ** 2 + m[1, 0] ** 2 + m[1, 1] ** 2) / 2.0
    if scale <= 0:
        return 0.0
    return float(np.clip(np.log2(scale), 0, num_levels - 1))


def trilinear_sample(
    chain: List[np.ndarray],
    xs: np.ndarray,
    ys: np.ndarray,
    level: float
) -> np.ndarray:
    """
    Blend bilinear samples from the two mip levels around `level`.

    Coordinates are given in level-0 space and divided by 2^l per level.
    """
    lower = int(np.floor(level))
    upper = int(np.ceil(level))
    t = level - lower

    first = bilinear_sample(chain[lower][..., :3], xs / 2 ** lower, ys / 2 ** lower)
    if upper == lower:
        return first

    second = bilinear_sample(chain[upper][..., :3], xs / 2 ** upper, ys / 2 ** upper)
    return first * (1 - t) + second * t


def _destination_grid(width: int, height: int, inverse: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    grid_x, grid_y = np.meshgrid(np.arange(width, dtype=np.float64), np.arange(height, dtype=np.float64))
    src_x = inverse[0, 0] * grid_x + inverse[0, 1] * grid_y + inverse[0, 2]
    src_y = inverse[1, 0] * grid_x + inverse[1, 1] * grid_y + inverse[1, 2]
    return src_x, src_y


def warp_affine(
    image: np.ndarray,
    src_points: Sequence[Point],
    dst_points: Sequence[Point],
    output_size: Optional[Tuple[int, int]] = None
) -> Tuple[np.ndarray, Dict]:
    """
    Warp an image so that the source triangle lands on the destination triangle.

    Args:
        image: RGBA buffer
        src_points: Three (x, y) points in the source image
        dst_points: Three (x, y) points in the output image
        output_size: Optional (width, height); defaults to the source size

    Returns:
        Tuple of (warped RGBA image with alpha 255, warp info). The info dict
        carries `degenerate`: True when the points did not define an
        invertible transform and the identity was used instead.
    """
    image = ensure_rgba(image)
    h, w = image.shape[:2]
    out_w, out_h = output_size if output_size is not None else (w, h)
    if out_w < 1 or out_h < 1:
        raise ValueError(f"Output size must be at least 1x1, got {out_w}x{out_h}")

    matrix, inverse, degenerate = affine_or_identity(src_points, dst_points)

    src_area = triangle_area(src_points)
    dst_area = triangle_area(dst_points)
    mode = FilterMode.TRILINEAR if dst_area < src_area else FilterMode.BILINEAR

    src_x, src_y = _destination_grid(out_w, out_h, inverse)

    info = {
        'matrix': matrix.tolist(),
        'inverse': inverse.tolist(),
        'degenerate': degenerate,
        'filter': mode.value,
        'source_area': src_area,
        'target_area': dst_area,
        'mip_levels': 1,
        'mip_level': 0.0,
    }

    if mode == FilterMode.TRILINEAR:
        chain = build_mipmap_chain(image)
        level = mip_level_for(inverse, len(chain))
        rgb = trilinear_sample(chain, src_x, src_y, level)
        info['mip_levels'] = len(chain)
        info['mip_level'] = level
    else:
        rgb = bilinear_sample(image[..., :3], src_x, src_y)

    out = np.empty((out_h, out_w, 4), dtype=np.uint8)
    out[..., :3] = to_uint8(rgb)
    out[..., 3] = 255

    logger.debug(
        f"Warp {w}x{h} -> {out_w}x{out_h}: filter={mode.value}, "
        f"mip_level={info['mip_level']:.2f}, degenerate={degenerate}"
    )
    return out, info


def rotate_image(image: np.ndarray, degrees: float, expand: bool = True) -> np.ndarray:
    """
    Rotate clockwise by an angle in degrees.

    Args:
        image: RGBA buffer
        degrees: Clockwise angle
        expand: Grow the canvas to ceil(W|cos| + H|sin|) x ceil(W|sin| + H|cos|)
            so no corner is cut off; False keeps W x H and crops

    Returns:
        Rotated RGBA buffer. Pixels with no source are transparent.
    """
    image = ensure_rgba(image)
    h, w = image.shape[:2]

    # Quarter turns are exact pixel permutations when the canvas allows it
    if degrees % 90 == 0 and (expand or h == w):
        quarter_turns = int(degrees // 90) % 4
        return np.rot90(image, k=-quarter_turns, axes=(0, 1)).copy()

    if expand:
        radians = np.deg2rad(degrees)
        sin, cos = abs(np.sin(radians)), abs(np.cos(radians))
        new_w = max(1, int(np.ceil(w * cos + h * sin)))
        new_h = max(1, int(np.ceil(w * sin + h * cos)))
    else:
        new_w, new_h = w, h

    # OpenCV angles are counter-clockwise
    matrix = cv2.getRotationMatrix2D(((w - 1) / 2.0, (h - 1) / 2.0), -degrees, 1.0)
    matrix[0, 2] += (new_w - w) / 2.0
    matrix[1, 2] += (new_h - h) / 2.0

    return cv2.warpAffine(
        image,
        matrix,
        (new_w, new_h),
        flags=cv2.INTER_LINEAR,
        borderMode=cv2.BORDER_CONSTANT,
        borderValue=(0, 0, 0, 0)
    )
