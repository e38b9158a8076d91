"""
Services layer for PixelKit.

This package provides the orchestration around the pixel kernels.
"""

from .filter_service import FilterService, FilterKind
from .transform_service import TransformService
from .retouch_service import RetouchSession, RetouchTool, SessionStore, SessionNotFoundError

__all__ = [
    'FilterService',
    'FilterKind',
    'TransformService',
    'RetouchSession',
    'RetouchTool',
    'SessionStore',
    'SessionNotFoundError',
]
