"""
PixelKit API - Pixel Kernels over HTTP

This FastAPI application provides endpoints for:
- Colour, tone and convolution filters
- Scaling, rotation and affine warping with trilinear filtering
- Interactive retouching sessions with undo/redo
- Polyhedron projection and cardinal splines
"""

from fastapi import Depends, FastAPI

from pixelkit import __version__
from pixelkit.config import get_config, get_server_settings
from pixelkit.models import HealthResponse
from pixelkit.services import FilterKind, SessionStore
from pixelkit.utils.logger import get_logger, setup_from_config

# Import routers
from pixelkit.routers import (
    filters_router,
    transform_router,
    retouch_router,
    geometry_router
)
from pixelkit.routers.base import get_session_store

logger = get_logger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="PixelKit API",
    description="Pixel kernels for filtering, resampling, warping and retouching images",
    version=__version__
)

# Include routers
app.include_router(filters_router)
app.include_router(transform_router)
app.include_router(retouch_router)
app.include_router(geometry_router)


@app.on_event("startup")
async def startup_event():
    """
    Configure logging on startup.
    """
    setup_from_config(get_config())
    logger.info(f"PixelKit API {__version__} started")


@app.get("/api/health", response_model=HealthResponse)
async def health_check(store: SessionStore = Depends(get_session_store)):
    """
    Health check endpoint.

    Returns:
        Service status, available filters and open retouch sessions
    """
    return HealthResponse(
        status="healthy",
        version=__version__,
        filters_count=len(FilterKind),
        active_sessions=len(store)
    )


def run():
    """Run the API with uvicorn using the `server` configuration section."""
    import uvicorn

    settings = get_server_settings()
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
