"""
Pixel kernel library for PixelKit.

This package provides pure functions over RGBA pixel buffers: colour and
tone filters, convolutions, resampling, affine warping with mipmapped
trilinear filtering, polyhedron projection and cardinal splines.
"""

from .utils import (
    ImageNotLoadedError,
    load_image_from_bytes,
    image_to_bytes,
    ensure_rgba,
)
from .color_filters import (
    grayscale,
    sepia,
    invert,
    vintage,
    lighten,
    darken,
    red_eye_reduction,
    pixelate,
)
from .convolution import (
    sobel_edges,
    emboss,
    sharpen,
    box_blur,
    box_blur_clipped,
    unsharp_mask,
    smooth_flat_regions,
)
from .resampling import (
    ScalingAlgorithm,
    AntiAliasing,
    resize,
    scale_image,
    lanczos_kernel,
)
from .affine import (
    DegenerateTransformError,
    affine_or_identity,
    compute_affine_matrix,
    invert_matrix,
    transform_point,
)
from .mipmap import build_mipmap_chain
from .warp import FilterMode, warp_affine, rotate_image
from .geometry import POLYHEDRA, Polyhedron, get_polyhedron, project_vertices, visible_faces, render_polyhedron
from .spline import cardinal_control_points, sample_spline, render_spline

__all__ = [
    'ImageNotLoadedError',
    'load_image_from_bytes',
    'image_to_bytes',
    'ensure_rgba',
    'grayscale',
    'sepia',
    'invert',
    'vintage',
    'lighten',
    'darken',
    'red_eye_reduction',
    'pixelate',
    'sobel_edges',
    'emboss',
    'sharpen',
    'box_blur',
    'box_blur_clipped',
    'unsharp_mask',
    'smooth_flat_regions',
    'ScalingAlgorithm',
    'AntiAliasing',
    'resize',
    'scale_image',
    'lanczos_kernel',
    'DegenerateTransformError',
    'affine_or_identity',
    'compute_affine_matrix',
    'invert_matrix',
    'transform_point',
    'build_mipmap_chain',
    'FilterMode',
    'warp_affine',
    'rotate_image',
    'POLYHEDRA',
    'Polyhedron',
    'get_polyhedron',
    'project_vertices',
    'visible_faces',
    'render_polyhedron',
    'cardinal_control_points',
    'sample_spline',
    'render_spline',
]
