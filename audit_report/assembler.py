"""
Audit document assembly.

Lays out a title paragraph followed by one picture paragraph per chunk and
serialises the result as a .docx package with python-docx. Every picture
is scaled by the same factor, display_width / source_width, so stacked
chunks keep the proportions of the original page.
"""

import io
import logging
from dataclasses import dataclass, field
from typing import List, Sequence

from docx import Document
from docx.image.exceptions import UnrecognizedImageError
from docx.shared import Emu, Pt

from screenshot_capture.models import ImageChunk
from .errors import EmptyInput, InvalidImage, check_cancelled

logger = logging.getLogger(__name__)

# docx measures in EMU; one CSS pixel at 96 DPI is 9525 EMU
EMU_PER_PIXEL = 9525
TITLE_FONT_SIZE = Pt(16)
DOCX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


@dataclass(frozen=True)
class DisplayBlock:
    """A chunk as it appears in the document: fixed width, proportional height."""

    display_width: float
    display_height: float
    chunk: ImageChunk = field(repr=False)


@dataclass(frozen=True)
class AuditDocument:
    title: str
    blocks: List[DisplayBlock]


def title_for(source_url: str) -> str:
    return f"Audit Report for {source_url}"


def plan_blocks(chunks: Sequence[ImageChunk], source_width: int, display_width: float) -> List[DisplayBlock]:
    """
    Scale chunks to display blocks in index order.

    Raises:
        EmptyInput: If there are no chunks
        InvalidImage: If widths are not positive or indices are not 0..n-1
    """
    if not chunks:
        raise EmptyInput("No image chunks to place in the document")
    if source_width <= 0:
        raise InvalidImage(f"Source width must be positive, got {source_width}")
    if display_width <= 0:
        raise ValueError(f"Display width must be positive, got {display_width}")

    ordered = sorted(chunks, key=lambda chunk: chunk.index)
    indices = [chunk.index for chunk in ordered]
    if indices != list(range(len(ordered))):
        raise InvalidImage(f"Chunk indices must run 0..{len(ordered) - 1} without gaps, got {indices}")

    scale = display_width / source_width
    return [
        DisplayBlock(display_width=display_width, display_height=chunk.height * scale, chunk=chunk)
        for chunk in ordered
    ]


def build_document(source_url: str, chunks: Sequence[ImageChunk], source_width: int,
                   display_width: float) -> AuditDocument:
    return AuditDocument(title=title_for(source_url),
                         blocks=plan_blocks(chunks, source_width, display_width))


def render_docx(document: AuditDocument, cancelled=None) -> bytes:
    """Serialise an AuditDocument to .docx bytes, stopping early once ``cancelled`` is set."""
    doc = Document()

    title = doc.add_paragraph()
    run = title.add_run(document.title)
    run.bold = True
    run.font.size = TITLE_FONT_SIZE

    # Spacer
    doc.add_paragraph("")

    for block in document.blocks:
        check_cancelled(cancelled, "assembly")
        picture = doc.add_paragraph().add_run()
        try:
            picture.add_picture(
                io.BytesIO(block.chunk.pixels),
                width=Emu(round(block.display_width * EMU_PER_PIXEL)),
                height=Emu(round(block.display_height * EMU_PER_PIXEL)),
            )
        except (UnrecognizedImageError, OSError) as e:
            raise InvalidImage(f"Chunk {block.chunk.index} is not an embeddable image: {e}") from e

    check_cancelled(cancelled, "assembly")
    buffer = io.BytesIO()
    doc.save(buffer)
    return buffer.getvalue()


def assemble(source_url: str, chunks: Sequence[ImageChunk], source_width: int,
             display_width: float = 600, cancelled=None) -> bytes:
    """
    Build the audit document for ``source_url`` and return it as .docx bytes.

    Args:
        source_url: URL shown in the title
        chunks: Captured bands, any order, indices 0..n-1
        source_width: Pixel width of the full-page capture
        display_width: Width every picture is scaled to, in pixels
        cancelled: Optional threading.Event; once set, rendering stops with
            DeadlineExceeded at the next picture

    Returns:
        The complete .docx payload
    """
    document = build_document(source_url, chunks, source_width, display_width)
    payload = render_docx(document, cancelled=cancelled)
    logger.info("  > Assembled document with %d images (%d bytes)", len(document.blocks), len(payload))
    return payload
