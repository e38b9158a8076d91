"""
PixelKit API Routers

This package contains modular FastAPI routers for different functional areas:
- filters: Whole-image colour, tone and convolution filters
- transform: Scaling, rotation and affine warping
- retouch: Interactive retouching sessions
- geometry: Polyhedron projection and cardinal splines
"""

from .filters import router as filters_router
from .transform import router as transform_router
from .retouch import router as retouch_router
from .geometry import router as geometry_router

__all__ = [
    "filters_router",
    "transform_router",
    "retouch_router",
    "geometry_router"
]
