"""Raster values passed between the capture, chunking and assembly stages."""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class RasterImage:
    """A full-page capture: encoded pixels plus their dimensions."""

    width: int
    height: int
    pixels: bytes = field(repr=False)
    format: str = "JPEG"


@dataclass(frozen=True)
class ImageChunk:
    """One horizontal band of a full-page capture, ordered top to bottom by index."""

    index: int
    offset_y: int
    height: int
    pixels: bytes = field(repr=False)


@dataclass(frozen=True)
class CaptureResult:
    """
    What an ImageSource hands back.

    A remote provider yields one ``image`` that still has to be split. The
    local renderer captures bands directly, so ``bands`` holds the encoded
    band payloads in top-to-bottom order and ``image`` is None.
    """

    width: int
    height: int
    image: Optional[RasterImage] = None
    bands: List[bytes] = field(default_factory=list, repr=False)
    band_height: Optional[int] = None

    @property
    def is_banded(self) -> bool:
        return self.image is None
