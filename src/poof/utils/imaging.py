"""Image processing utilities for poof.

Post-processes raw window captures before they are handed to the
caller: optional downscaling and re-encoding as JPEG.
"""

from __future__ import annotations

import logging

import cv2
import numpy as np

logger = logging.getLogger(__name__)

MIME_TYPES = {"png": "image/png", "jpeg": "image/jpeg"}


def decode_image(data: bytes) -> np.ndarray:
    """Decode encoded image bytes to a BGR numpy array."""
    buffer = np.frombuffer(data, dtype=np.uint8)
    image = cv2.imdecode(buffer, cv2.IMREAD_COLOR)
    if image is None:
        raise ValueError("Failed to decode image data")
    return image


def encode_image(image: np.ndarray, image_format: str = "png", jpeg_quality: int = 85) -> bytes:
    """Encode a BGR numpy array as PNG or JPEG bytes."""
    if image_format == "jpeg":
        success, buffer = cv2.imencode(".jpg", image, [cv2.IMWRITE_JPEG_QUALITY, jpeg_quality])
    else:
        success, buffer = cv2.imencode(".png", image)
    if not success:
        raise ValueError(f"Failed to encode image to {image_format}")
    return buffer.tobytes()


def limit_size(image: np.ndarray, max_dimension: int) -> np.ndarray:
    """Downscale so the longest side is at most ``max_dimension``.

    Preserves aspect ratio. Images already small enough are returned
    unchanged.
    """
    h, w = image.shape[:2]
    largest = max(h, w)
    if largest <= max_dimension:
        return image
    scale = max_dimension / largest
    new_w = max(1, int(w * scale))
    new_h = max(1, int(h * scale))
    return cv2.resize(image, (new_w, new_h), interpolation=cv2.INTER_AREA)


def prepare_screenshot(
    png_data: bytes,
    image_format: str = "png",
    max_dimension: int | None = None,
    jpeg_quality: int = 85,
) -> tuple[bytes, str]:
    """Turn a raw PNG capture into the bytes and MIME type to return.

    The capture is passed through untouched when no resizing or format
    change is requested.
    """
    if image_format == "png" and max_dimension is None:
        return png_data, MIME_TYPES["png"]

    image = decode_image(png_data)
    if max_dimension is not None:
        image = limit_size(image, max_dimension)
    data = encode_image(image, image_format, jpeg_quality)
    logger.debug(
        "Prepared screenshot: %dx%d %s, %d bytes",
        image.shape[1], image.shape[0], image_format, len(data),
    )
    return data, MIME_TYPES[image_format]
