"""
Image processing utilities for Design Critic.

This module validates uploaded screenshots, normalizes them to PNG, and
shrinks oversized images to comply with the evaluator's image limits.
"""

import base64
import io
import logging
from dataclasses import dataclass
from typing import Optional

from PIL import Image, UnidentifiedImageError

from design_critic.exceptions import CaptureError, InputValidationError

logger = logging.getLogger(__name__)

MAX_UPLOAD_BYTES = 10 * 1024 * 1024
PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"

# Full-page captures at 2x are legitimately tall (3840 x 48000 and beyond);
# Pillow's default bomb limit would reject them
MAX_IMAGE_PIXELS = 400_000_000
Image.MAX_IMAGE_PIXELS = MAX_IMAGE_PIXELS


@dataclass(frozen=True)
class EncodedImage:
    """Base64 image payload plus its media type."""

    data: str
    media_type: str


def _format_size(num_bytes: int) -> str:
    if num_bytes % (1024 * 1024) == 0:
        return f"{num_bytes // (1024 * 1024)}MB"
    return f"{num_bytes} bytes"


def encode_base64(image_bytes: bytes) -> str:
    return base64.b64encode(image_bytes).decode("utf-8")


def normalize_upload(
    data: bytes,
    content_type: Optional[str],
    max_bytes: int = MAX_UPLOAD_BYTES,
) -> bytes:
    """
    Validate an uploaded screenshot and return canonical PNG bytes.

    The declared content type is checked first, then the payload is decoded
    with Pillow so a mislabeled file is still rejected. PNG uploads are
    returned unchanged; other formats are re-encoded as PNG.

    Args:
        data: Raw uploaded bytes
        content_type: Media type declared by the client
        max_bytes: Maximum accepted payload size (default 10 MiB)

    Returns:
        PNG bytes

    Raises:
        InputValidationError: If the upload is not an image or is too large
    """
    if not content_type or not content_type.startswith("image/"):
        raise InputValidationError("File must be an image")

    if not data:
        raise InputValidationError("Screenshot file is required")

    if len(data) > max_bytes:
        raise InputValidationError(f"File size must be less than {_format_size(max_bytes)}")

    try:
        with Image.open(io.BytesIO(data)) as probe:
            image_format = probe.format
            probe.verify()
    except Image.DecompressionBombError as e:
        logger.warning(f"Rejected upload with too many pixels: {e}")
        raise InputValidationError("Image dimensions are too large")
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
        logger.warning(f"Rejected upload that could not be decoded: {e}")
        raise InputValidationError("File must be an image")

    if image_format == "PNG":
        return data

    return to_png(data)


def _open_image(image_bytes: bytes) -> Image.Image:
    try:
        return Image.open(io.BytesIO(image_bytes))
    except Image.DecompressionBombError as e:
        logger.error(f"❌ Image exceeds {Image.MAX_IMAGE_PIXELS} pixels: {e}")
        raise CaptureError(f"Image is too large to process: {e}") from e


def normalize_capture(raster: bytes) -> bytes:
    """Return browser screenshot bytes as PNG (no upload size limit applies)"""
    if raster.startswith(PNG_SIGNATURE):
        return raster
    return to_png(raster)


def to_png(image_bytes: bytes) -> bytes:
    """Re-encode any Pillow-readable image as PNG"""
    image = _open_image(image_bytes)

    # PNG has no CMYK/YCbCr modes
    if image.mode not in ("RGB", "RGBA", "L", "LA", "P"):
        image = image.convert("RGBA" if "A" in image.getbands() else "RGB")

    buffer = io.BytesIO()
    image.save(buffer, format="PNG", optimize=True)
    return buffer.getvalue()


def prepare_for_evaluator(
    png_bytes: bytes, max_dimension: int = 7500, max_file_size: int = 5_242_880
) -> EncodedImage:
    """
    Resize and compress an image to comply with the evaluator's limits:
    - 8000px maximum dimension
    - 5 MB maximum file size

    Images already inside both limits are sent as-is (PNG). Otherwise the
    image is downscaled and, if still too large, JPEG-compressed with
    decreasing quality until it fits.

    Args:
        png_bytes: Canonical PNG bytes
        max_dimension: Maximum width/height in pixels (default 7500)
        max_file_size: Maximum file size in bytes (default 5MB = 5,242,880 bytes)

    Returns:
        EncodedImage with base64 data and media type
    """
    image = _open_image(png_bytes)
    width, height = image.size

    if (
        width <= max_dimension
        and height <= max_dimension
        and len(png_bytes) <= max_file_size
    ):
        return EncodedImage(data=encode_base64(png_bytes), media_type="image/png")

    logger.info(
        f"Shrinking {width}x{height} image ({len(png_bytes)} bytes) for the evaluator"
    )

    # Step 1: Resize dimensions if needed
    if width > max_dimension or height > max_dimension:
        # Calculate new dimensions maintaining aspect ratio
        if width > height:
            new_width = max_dimension
            new_height = int(height * (max_dimension / width))
        else:
            new_height = max_dimension
            new_width = int(width * (max_dimension / height))

        image = image.resize((new_width, new_height), Image.Resampling.LANCZOS)

        buffer = io.BytesIO()
        image.save(buffer, format="PNG", optimize=True)
        if buffer.tell() <= max_file_size:
            return EncodedImage(
                data=encode_base64(buffer.getvalue()), media_type="image/png"
            )

    # Convert RGBA to RGB if necessary (JPEG doesn't support transparency)
    if image.mode == "RGBA":
        rgb_image = Image.new("RGB", image.size, (255, 255, 255))
        rgb_image.paste(image, mask=image.split()[3])  # Use alpha channel as mask
        image = rgb_image
    elif image.mode != "RGB":
        image = image.convert("RGB")

    # Step 2: Compress to stay under file size limit
    quality = 95
    buffer = io.BytesIO()

    while quality > 20:  # Don't go below 20% quality
        buffer = io.BytesIO()
        image.save(buffer, format="JPEG", quality=quality, optimize=True)

        if buffer.tell() <= max_file_size:
            break

        quality -= 10

    # Step 3: If still too large after max compression, reduce dimensions further
    if buffer.tell() > max_file_size:
        scale_factor = 0.8
        while buffer.tell() > max_file_size and scale_factor > 0.3:
            new_width = int(image.width * scale_factor)
            new_height = int(image.height * scale_factor)
            resized = image.resize((new_width, new_height), Image.Resampling.LANCZOS)

            buffer = io.BytesIO()
            resized.save(buffer, format="JPEG", quality=75, optimize=True)

            if buffer.tell() <= max_file_size:
                break

            scale_factor -= 0.1

    return EncodedImage(data=encode_base64(buffer.getvalue()), media_type="image/jpeg")
