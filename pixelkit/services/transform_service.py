"""
Geometric transform service: scaling, rotation and affine warping.
"""

from typing import Dict, Optional, Sequence, Tuple

import numpy as np

from pixelkit.config import KernelSettings, get_kernel_settings
from pixelkit.image_processing import (
    AntiAliasing,
    ScalingAlgorithm,
    affine_or_identity,
    rotate_image,
    scale_image,
    warp_affine,
)
from pixelkit.utils.logger import get_logger, log_execution_time

logger = get_logger(__name__)


class TransformService:
    """Applies resampling kernels with configured defaults."""

    def __init__(self, settings: Optional[KernelSettings] = None):
        self.settings = settings or get_kernel_settings()

    @log_execution_time(logger)
    def scale(
        self,
        image: np.ndarray,
        scale: float,
        algorithm: ScalingAlgorithm = ScalingAlgorithm.BILINEAR,
        anti_aliasing: AntiAliasing = AntiAliasing.NONE
    ) -> np.ndarray:
        """Scale by a factor with the configured Lanczos radius and AA settings."""
        return scale_image(
            image,
            scale,
            algorithm=ScalingAlgorithm(algorithm),
            anti_aliasing=AntiAliasing(anti_aliasing),
            lanczos_radius=self.settings.lanczos_radius,
            ssaa_factor=self.settings.ssaa_factor,
            msaa_edge_threshold=self.settings.msaa_edge_threshold,
        )

    @log_execution_time(logger)
    def rotate(self, image: np.ndarray, degrees: float, expand: bool = True) -> np.ndarray:
        return rotate_image(image, degrees, expand=expand)

    @log_execution_time(logger)
    def warp(
        self,
        image: np.ndarray,
        src_points: Sequence[Tuple[float, float]],
        dst_points: Sequence[Tuple[float, float]],
        output_size: Optional[Tuple[int, int]] = None
    ) -> Tuple[np.ndarray, Dict]:
        """Warp the source triangle onto the destination triangle."""
        return warp_affine(image, src_points, dst_points, output_size)

    def affine(
        self,
        src_points: Sequence[Tuple[float, float]],
        dst_points: Sequence[Tuple[float, float]]
    ) -> Dict:
        """
        Affine matrix and inverse for three point correspondences.

        Collinear points yield the identity with `degenerate` set instead of
        an error.
        """
        matrix, inverse, degenerate = affine_or_identity(src_points, dst_points)
        return {
            'matrix': matrix.tolist(),
            'inverse': inverse.tolist(),
            'degenerate': degenerate,
        }
