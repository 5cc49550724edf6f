"""
Screenshot Capture Module

Acquires full-page captures of web pages and splits them into bands.

Key Features:
- Local rendering with Playwright: lazy-load scrolling, settle, per-band capture
- Remote rendering through a screenshot provider, fetched as one image
- Deterministic band splitting with Pillow

Usage:
    from screenshot_capture import create_image_source, to_chunks

    source = create_image_source()
    result = await source.capture(url, timeout=60)
    chunks = to_chunks(result, chunk_height=1200)
"""

from config import Config
from .base import ImageSource, validate_url
from .browser import LocalRenderer
from .chunker import chunk_bounds, split, to_chunks
from .models import CaptureResult, ImageChunk, RasterImage
from .provider import RemoteProvider

SOURCES = {
    LocalRenderer.name: LocalRenderer,
    RemoteProvider.name: RemoteProvider,
}


def create_image_source(config=Config, strategy: str = None) -> ImageSource:
    """Build the ImageSource variant selected by ``strategy`` or ``config.CAPTURE_STRATEGY``."""
    strategy = (strategy or config.CAPTURE_STRATEGY).lower()
    try:
        source_cls = SOURCES[strategy]
    except KeyError:
        raise ValueError(f"Unknown capture strategy: {strategy}. Choose from {', '.join(SOURCES)}")
    return source_cls(config=config)


__all__ = [
    'CaptureResult', 'ImageChunk', 'ImageSource', 'LocalRenderer', 'RasterImage',
    'RemoteProvider', 'chunk_bounds', 'create_image_source', 'split', 'to_chunks',
    'validate_url',
]
