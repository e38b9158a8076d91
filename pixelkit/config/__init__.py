"""Configuration module for PixelKit."""

from .config_loader import get_config, reload_config
from .models import (
    KernelSettings,
    RetouchSettings,
    GeometrySettings,
    ServerSettings,
    get_kernel_settings,
    get_retouch_settings,
    get_geometry_settings,
    get_server_settings,
)

__all__ = [
    'get_config',
    'reload_config',
    'KernelSettings',
    'RetouchSettings',
    'GeometrySettings',
    'ServerSettings',
    'get_kernel_settings',
    'get_retouch_settings',
    'get_geometry_settings',
    'get_server_settings',
]
