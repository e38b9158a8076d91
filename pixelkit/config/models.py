"""
Pydantic Models for PixelKit Configuration

Provides type-safe access to the sections of pixelkit_config.yaml.
"""

from pydantic import BaseModel, Field, field_validator

from .config_loader import get_config


class KernelSettings(BaseModel):
    """Default parameters for the pixel kernels."""

    edge_threshold: float = Field(100, ge=0, description="Sobel magnitude threshold")
    blur_radius: float = Field(2, ge=0, le=100, description="Box blur radius")
    lanczos_radius: int = Field(2, ge=1, le=5, description="Lanczos window radius a")
    unsharp_amount: float = Field(1.0, ge=0, le=5, description="Unsharp mask amount")
    unsharp_radius: float = Field(1.0, ge=0, le=50, description="Unsharp mask blur radius")
    unsharp_threshold: float = Field(0, ge=0, le=255, description="Unsharp mask threshold")
    sharpen_intensity: float = Field(0.5, ge=0, le=1, description="Sharpen blend factor")
    tone_intensity: float = Field(0.5, ge=0, le=1, description="Lighten/darken/red-eye intensity")
    pixel_size: int = Field(10, ge=1, le=512, description="Pixelate block size")
    msaa_edge_threshold: float = Field(30, ge=0, le=255, description="Edge threshold for MSAA smoothing")
    ssaa_factor: int = Field(2, ge=2, le=4, description="Supersampling factor")


class RetouchSettings(BaseModel):
    """Defaults for interactive retouching sessions."""

    history_limit: int = Field(20, ge=1, le=200, description="Maximum undo snapshots kept")
    brush_size: int = Field(20, ge=1, le=500, description="Default brush diameter in pixels")
    intensity: float = Field(0.5, ge=0, le=1, description="Default tool intensity")
    max_sessions: int = Field(64, ge=1, description="Maximum concurrent sessions kept in memory")


class GeometrySettings(BaseModel):
    """Polyhedron viewer and spline defaults."""

    camera_distance: float = Field(5.0, gt=1.0, description="Perspective camera distance")
    canvas_size: int = Field(600, ge=32, le=4096, description="Rendered canvas edge length")
    spline_samples: int = Field(24, ge=2, le=512, description="Samples per spline segment")


class ServerSettings(BaseModel):
    """HTTP server settings."""

    host: str = "0.0.0.0"
    port: int = Field(8000, ge=1, le=65535)
    max_upload_bytes: int = Field(20971520, ge=1024, description="Largest accepted upload")

    @field_validator('host')
    @classmethod
    def validate_host(cls, v):
        """Reject empty host strings."""
        if not v.strip():
            raise ValueError('host must not be empty')
        return v


def get_kernel_settings() -> KernelSettings:
    """Kernel defaults from the active configuration."""
    return KernelSettings(**get_config().get_section('kernels'))


def get_retouch_settings() -> RetouchSettings:
    """Retouch defaults from the active configuration."""
    return RetouchSettings(**get_config().get_section('retouch'))


def get_geometry_settings() -> GeometrySettings:
    """Geometry defaults from the active configuration."""
    return GeometrySettings(**get_config().get_section('geometry'))


def get_server_settings() -> ServerSettings:
    """Server settings from the active configuration."""
    return ServerSettings(**get_config().get_section('server'))
