"""
Split full-page captures into bounded-height bands.

Band geometry is fixed: for a source of height H and chunk height C, band i
starts at i*C and is min(C, H - i*C) tall, for i in 0 .. ceil(H/C) - 1.
"""

import io
import logging
from typing import List, Tuple

from PIL import Image, UnidentifiedImageError

from audit_report.errors import InvalidImage, check_cancelled
from .models import CaptureResult, ImageChunk, RasterImage

logger = logging.getLogger(__name__)


def chunk_bounds(height: int, chunk_height: int) -> List[Tuple[int, int]]:
    """Return (offset_y, band_height) pairs covering ``height`` top to bottom."""
    if height <= 0:
        raise InvalidImage(f"Image height must be positive, got {height}")
    if chunk_height <= 0:
        raise ValueError(f"Chunk height must be positive, got {chunk_height}")
    return [(y, min(chunk_height, height - y)) for y in range(0, height, chunk_height)]


def split(image: RasterImage, chunk_height: int, quality: int = 80, cancelled=None) -> List[ImageChunk]:
    """
    Crop a RasterImage into ordered ImageChunks of at most ``chunk_height`` pixels.

    Args:
        image: Full-page capture to split
        chunk_height: Maximum band height in pixels
        quality: JPEG quality used to re-encode each band
        cancelled: Optional threading.Event checked before each band

    Returns:
        Chunks in top-to-bottom order, heights summing to ``image.height``

    Raises:
        InvalidImage: If the image has no area or its pixels do not decode to
            the declared dimensions
        DeadlineExceeded: If ``cancelled`` is set while bands are being cut
    """
    if image.width <= 0 or image.height <= 0:
        raise InvalidImage(f"Image has no area: {image.width}x{image.height}")

    bounds = chunk_bounds(image.height, chunk_height)

    try:
        with Image.open(io.BytesIO(image.pixels)) as source:
            if source.size != (image.width, image.height):
                raise InvalidImage(
                    f"Decoded size {source.size[0]}x{source.size[1]} does not match "
                    f"declared {image.width}x{image.height}"
                )
            source = source.convert("RGB")
            chunks = []
            for index, (offset_y, band_height) in enumerate(bounds):
                check_cancelled(cancelled, "chunking")
                band = source.crop((0, offset_y, image.width, offset_y + band_height))
                buffer = io.BytesIO()
                band.save(buffer, format="JPEG", quality=quality)
                chunks.append(ImageChunk(index=index, offset_y=offset_y,
                                         height=band_height, pixels=buffer.getvalue()))
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise InvalidImage(f"Captured image could not be decoded: {e}") from e

    logger.debug("  > Split %dpx image into %d chunks", image.height, len(chunks))
    return chunks


def from_bands(result: CaptureResult) -> List[ImageChunk]:
    """Wrap bands captured directly by the browser as chunks, without re-decoding."""
    if result.width <= 0 or result.height <= 0:
        raise InvalidImage(f"Capture has no area: {result.width}x{result.height}")
    if not result.band_height:
        raise InvalidImage("Banded capture is missing its band height")

    bounds = chunk_bounds(result.height, result.band_height)
    if len(bounds) != len(result.bands):
        raise InvalidImage(
            f"Expected {len(bounds)} bands for a {result.height}px page, got {len(result.bands)}"
        )

    return [
        ImageChunk(index=index, offset_y=offset_y, height=band_height, pixels=pixels)
        for index, ((offset_y, band_height), pixels) in enumerate(zip(bounds, result.bands))
    ]


def to_chunks(result: CaptureResult, chunk_height: int, quality: int = 80,
              cancelled=None) -> List[ImageChunk]:
    """Chunk any CaptureResult: split a whole image, or pass bands through."""
    if result.is_banded:
        return from_bands(result)
    return split(result.image, chunk_height, quality=quality, cancelled=cancelled)
