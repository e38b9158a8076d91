"""
Shared helpers for PixelKit routers: upload decoding, PNG responses and
service dependencies.
"""

import io
from typing import Dict, Optional

import numpy as np
from fastapi import HTTPException, UploadFile
from fastapi.responses import StreamingResponse

from pixelkit.config import get_server_settings
from pixelkit.image_processing import image_to_bytes, load_image_from_bytes
from pixelkit.services import FilterService, SessionStore, TransformService

_filter_service: Optional[FilterService] = None
_transform_service: Optional[TransformService] = None
_session_store: Optional[SessionStore] = None


async def read_image(file: UploadFile) -> np.ndarray:
    """
    Read an uploaded file and decode it to RGBA.

    Raises:
        HTTPException: 413 when the upload exceeds the configured limit
        ValueError: If the data cannot be decoded
    """
    content = await file.read()
    limit = get_server_settings().max_upload_bytes
    if len(content) > limit:
        raise HTTPException(status_code=413, detail=f"Upload exceeds {limit} bytes")
    return load_image_from_bytes(content)


def png_response(image: np.ndarray, headers: Optional[Dict[str, str]] = None) -> StreamingResponse:
    """Encode an RGBA buffer as a PNG streaming response."""
    return StreamingResponse(
        io.BytesIO(image_to_bytes(image)),
        media_type="image/png",
        headers=headers
    )


def get_filter_service() -> FilterService:
    global _filter_service
    if _filter_service is None:
        _filter_service = FilterService()
    return _filter_service


def get_transform_service() -> TransformService:
    global _transform_service
    if _transform_service is None:
        _transform_service = TransformService()
    return _transform_service


def get_session_store() -> SessionStore:
    global _session_store
    if _session_store is None:
        _session_store = SessionStore()
    return _session_store
