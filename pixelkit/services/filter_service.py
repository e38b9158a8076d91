"""
Filter service for whole-image kernels.

Each filter kind carries its own pydantic parameter model. Requests are
validated against that model (with defaults taken from the `kernels`
configuration section) and dispatched through a table that covers every
kind.
"""

from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple, Type

import numpy as np
from pydantic import BaseModel, Field

from pixelkit.config import KernelSettings, get_kernel_settings
from pixelkit.image_processing import (
    grayscale,
    sepia,
    invert,
    vintage,
    lighten,
    darken,
    red_eye_reduction,
    pixelate,
    sobel_edges,
    emboss,
    sharpen,
    box_blur,
    unsharp_mask,
)
from pixelkit.image_processing.utils import ensure_rgba
from pixelkit.utils.logger import get_logger, log_execution_time

logger = get_logger(__name__)


class FilterKind(str, Enum):
    """Whole-image filters available through the service."""

    GRAYSCALE = "grayscale"
    SEPIA = "sepia"
    INVERT = "invert"
    VINTAGE = "vintage"
    LIGHTEN = "lighten"
    DARKEN = "darken"
    RED_EYE = "red_eye"
    PIXELATE = "pixelate"
    EDGES = "edges"
    EMBOSS = "emboss"
    SHARPEN = "sharpen"
    BLUR = "blur"
    UNSHARP_MASK = "unsharp_mask"


class NoParams(BaseModel):
    """Filters without parameters."""


class VintageParams(BaseModel):
    seed: Optional[int] = Field(None, ge=0, description="Seed for reproducible grain")


class IntensityParams(BaseModel):
    intensity: float = Field(0.5, ge=0, le=1)


class PixelateParams(BaseModel):
    block_size: int = Field(10, ge=1, le=512)


class EdgeParams(BaseModel):
    threshold: float = Field(100, ge=0)


class BlurParams(BaseModel):
    radius: float = Field(2, ge=0, le=100)


class UnsharpMaskParams(BaseModel):
    amount: float = Field(1.0, ge=0, le=5, description="Strength, 1.0 = 100 %")
    radius: float = Field(1.0, ge=0, le=50)
    threshold: float = Field(0, ge=0, le=255)


Handler = Callable[[np.ndarray, Any], np.ndarray]


class FilterService:
    """
    Validates filter parameters and applies whole-image kernels.
    """

    def __init__(self, settings: Optional[KernelSettings] = None):
        """
        Initialize the filter service.

        Args:
            settings: Kernel defaults (read from configuration when omitted)
        """
        self.settings = settings or get_kernel_settings()
        self._table: Dict[FilterKind, Tuple[Type[BaseModel], Handler]] = {
            FilterKind.GRAYSCALE: (NoParams, lambda img, p: grayscale(img)),
            FilterKind.SEPIA: (NoParams, lambda img, p: sepia(img)),
            FilterKind.INVERT: (NoParams, lambda img, p: invert(img)),
            FilterKind.VINTAGE: (VintageParams, lambda img, p: vintage(img, seed=p.seed)),
            FilterKind.LIGHTEN: (IntensityParams, lambda img, p: lighten(img, p.intensity)),
            FilterKind.DARKEN: (IntensityParams, lambda img, p: darken(img, p.intensity)),
            FilterKind.RED_EYE: (IntensityParams, lambda img, p: red_eye_reduction(img, p.intensity)),
            FilterKind.PIXELATE: (PixelateParams, lambda img, p: pixelate(img, p.block_size)),
            FilterKind.EDGES: (EdgeParams, lambda img, p: sobel_edges(img, p.threshold)),
            FilterKind.EMBOSS: (NoParams, lambda img, p: emboss(img)),
            FilterKind.SHARPEN: (IntensityParams, lambda img, p: sharpen(img, p.intensity)),
            FilterKind.BLUR: (BlurParams, lambda img, p: box_blur(img, p.radius)),
            FilterKind.UNSHARP_MASK: (
                UnsharpMaskParams,
                lambda img, p: unsharp_mask(img, p.amount, p.radius, p.threshold)
            ),
        }

        missing = set(FilterKind) - set(self._table)
        if missing:
            raise RuntimeError(f"No handler registered for filters: {sorted(k.value for k in missing)}")

    def defaults(self, kind: FilterKind) -> Dict[str, Any]:
        """Configured default parameters for a filter kind."""
        s = self.settings
        kind = FilterKind(kind)
        if kind == FilterKind.SHARPEN:
            return {'intensity': s.sharpen_intensity}
        if kind in (FilterKind.LIGHTEN, FilterKind.DARKEN, FilterKind.RED_EYE):
            return {'intensity': s.tone_intensity}
        if kind == FilterKind.PIXELATE:
            return {'block_size': s.pixel_size}
        if kind == FilterKind.EDGES:
            return {'threshold': s.edge_threshold}
        if kind == FilterKind.BLUR:
            return {'radius': s.blur_radius}
        if kind == FilterKind.UNSHARP_MASK:
            return {
                'amount': s.unsharp_amount,
                'radius': s.unsharp_radius,
                'threshold': s.unsharp_threshold,
            }
        return {}

    def parameter_names(self, kind: FilterKind) -> List[str]:
        """Names of the parameters a filter kind accepts."""
        model, _ = self._table[FilterKind(kind)]
        return list(model.model_fields)

    def parse_params(self, kind: FilterKind, values: Optional[Dict[str, Any]] = None) -> BaseModel:
        """
        Validate raw parameters for a filter kind.

        Missing values fall back to the configured defaults; None values
        are treated as missing.

        Raises:
            ValueError: If the kind is unknown or a parameter is out of range
                (pydantic's ValidationError is a ValueError)
        """
        kind = FilterKind(kind)
        model, _ = self._table[kind]
        merged = self.defaults(kind)
        merged.update({k: v for k, v in (values or {}).items() if v is not None})
        return model.model_validate(merged)

    @log_execution_time(logger)
    def apply(
        self,
        image: np.ndarray,
        kind: FilterKind,
        params: Optional[Dict[str, Any]] = None
    ) -> np.ndarray:
        """
        Apply a filter to an image.

        Args:
            image: RGBA buffer
            kind: Filter kind (enum or its string value)
            params: Raw parameter values

        Returns:
            New RGBA buffer
        """
        kind = FilterKind(kind)
        image = ensure_rgba(image)
        parsed = self.parse_params(kind, params)
        _, handler = self._table[kind]

        logger.debug(f"Applying {kind.value} to {image.shape[1]}x{image.shape[0]} with {parsed.model_dump()}")
        return handler(image, parsed)

    def list_filters(self) -> List[Dict[str, Any]]:
        """Every filter kind with its configured default parameters."""
        return [
            {'name': kind.value, 'parameters': self.parse_params(kind).model_dump()}
            for kind in FilterKind
        ]
