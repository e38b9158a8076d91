"""
Utility functions for image processing.

This module provides helper functions for image decoding and encoding,
RGBA buffer validation, and the rounding/clamping shared by every kernel.
"""

import io

import cv2
import numpy as np
from PIL import Image, UnidentifiedImageError


class ImageNotLoadedError(ValueError):
    """Raised when a kernel is invoked without a source image."""


def load_image_from_bytes(image_bytes: bytes) -> np.ndarray:
    """
    Decode an image from bytes into an RGBA pixel buffer.

    Args:
        image_bytes: Encoded image data (PNG, JPEG, BMP, GIF, ...)

    Returns:
        Image as numpy array of shape (H, W, 4), dtype uint8, RGBA order

    Raises:
        ValueError: If the data is empty or cannot be decoded
    """
    if not image_bytes:
        raise ImageNotLoadedError("No image data received")

    nparr = np.frombuffer(image_bytes, np.uint8)
    img = cv2.imdecode(nparr, cv2.IMREAD_UNCHANGED)

    if img is None:
        # OpenCV cannot read every format (GIF for one), Pillow handles the rest
        try:
            with Image.open(io.BytesIO(image_bytes)) as pil_img:
                return np.array(pil_img.convert('RGBA'), dtype=np.uint8)
        except (UnidentifiedImageError, OSError) as e:
            raise ValueError("Could not decode image data") from e

    return decoded_to_rgba(img)


def decoded_to_rgba(img: np.ndarray) -> np.ndarray:
    """
    Convert an OpenCV-decoded image (gray, BGR or BGRA) to RGBA uint8.
    """
    if img.dtype == np.uint16:
        img = (img >> 8).astype(np.uint8)
    elif img.dtype != np.uint8:
        img = to_uint8(img)

    if img.ndim == 2:
        return cv2.cvtColor(img, cv2.COLOR_GRAY2RGBA)
    if img.shape[2] == 3:
        return cv2.cvtColor(img, cv2.COLOR_BGR2RGBA)
    if img.shape[2] == 4:
        return cv2.cvtColor(img, cv2.COLOR_BGRA2RGBA)

    raise ValueError(f"Unsupported channel count: {img.shape[2]}")


def image_to_bytes(image: np.ndarray, format: str = 'PNG') -> bytes:
    """
    Encode an RGBA pixel buffer.

    Args:
        image: RGBA image as numpy array
        format: Output format (PNG by default)

    Returns:
        Encoded image as bytes
    """
    image = ensure_rgba(image)
    bgra = cv2.cvtColor(image, cv2.COLOR_RGBA2BGRA)
    is_success, buffer = cv2.imencode(f'.{format.lower()}', bgra)
    if not is_success:
        raise ValueError("Failed to encode image")
    return buffer.tobytes()


def ensure_rgba(image: np.ndarray) -> np.ndarray:
    """
    Validate a pixel buffer and return it as contiguous RGBA uint8.

    Gray (H, W) and RGB (H, W, 3) arrays are promoted with alpha 255.

    Raises:
        ImageNotLoadedError: If no image is given
        ValueError: If the array cannot be interpreted as an image
    """
    if image is None:
        raise ImageNotLoadedError("No image loaded")

    image = np.asarray(image)
    if image.size == 0:
        raise ImageNotLoadedError("Image is empty")

    if image.dtype != np.uint8:
        image = to_uint8(image)

    if image.ndim == 2:
        image = np.dstack([image, image, image, np.full_like(image, 255)])
    elif image.ndim == 3 and image.shape[2] == 3:
        alpha = np.full(image.shape[:2] + (1,), 255, dtype=np.uint8)
        image = np.concatenate([image, alpha], axis=2)
    elif image.ndim != 3 or image.shape[2] != 4:
        raise ValueError(f"Expected an (H, W, 4) RGBA buffer, got shape {image.shape}")

    return np.ascontiguousarray(image)


def to_uint8(values: np.ndarray) -> np.ndarray:
    """Round to nearest (ties to even) and clamp into [0, 255]."""
    return np.clip(np.rint(values), 0, 255).astype(np.uint8)


def round_half_up(values: np.ndarray) -> np.ndarray:
    """Round non-negative values with ties going up."""
    return np.floor(np.asarray(values, dtype=np.float64) + 0.5)


def luminance(image: np.ndarray) -> np.ndarray:
    """Rec. 601 luma of an RGBA buffer as float64 (H, W)."""
    rgb = image[..., :3].astype(np.float64)
    return 0.299 * rgb[..., 0] + 0.587 * rgb[..., 1] + 0.114 * rgb[..., 2]
