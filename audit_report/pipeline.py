"""
Audit pipeline controller.

Runs capture, chunking and assembly in sequence under one wall-clock
deadline and converts any stage failure into a PipelineError. This is the
only place internal errors are translated for the boundary.
"""

import asyncio
import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional

from config import Config, configure_logging
from screenshot_capture import ImageSource, create_image_source, to_chunks, validate_url
from .assembler import assemble
from .errors import AuditError, DeadlineExceeded, InputError, PipelineError
from .filenames import sanitize_report_name

logger = logging.getLogger(__name__)

FAILURE_SUMMARY = "Failed to generate audit"


class PipelineState(Enum):
    IDLE = "idle"
    CAPTURING = "capturing"
    CHUNKING = "chunking"
    ASSEMBLING = "assembling"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class PipelineOptions:
    """Per-run knobs, defaulting to the application configuration."""

    chunk_height: int = 1200
    display_width: float = 600
    deadline: float = 60.0
    jpeg_quality: int = 80

    @classmethod
    def from_config(cls, config=Config) -> "PipelineOptions":
        return cls(
            chunk_height=config.CHUNK_HEIGHT,
            display_width=config.DISPLAY_WIDTH,
            deadline=config.PIPELINE_DEADLINE_S,
            jpeg_quality=config.JPEG_QUALITY,
        )


@dataclass
class PipelineRun:
    """State of one run. Each call to AuditPipeline.run gets its own."""

    url: str
    state: PipelineState = PipelineState.IDLE
    history: List[PipelineState] = field(default_factory=lambda: [PipelineState.IDLE])
    failure: Optional[str] = None

    def advance(self, state: PipelineState):
        self.state = state
        self.history.append(state)
        logger.debug("  > %s: %s", self.url, state.value)

    def fail(self, reason: str):
        self.failure = reason
        self.advance(PipelineState.FAILED)


def to_pipeline_error(error: Exception) -> PipelineError:
    """Map a stage error to the single boundary error kind."""
    if isinstance(error, InputError):
        return PipelineError(error.reason, status_code=error.status_code, kind=type(error).__name__)
    if isinstance(error, AuditError):
        return PipelineError(FAILURE_SUMMARY, details=error.reason, status_code=error.status_code,
                             kind=type(error).__name__, retryable=error.retryable)
    return PipelineError(FAILURE_SUMMARY, details=str(error) or type(error).__name__,
                         status_code=500, kind="UnexpectedError")


class AuditPipeline:
    """
    Capture -> Chunk -> Assemble for a single URL.

    No retries happen inside a run. If the deadline passes, the in-flight
    stage is cancelled and the run fails with DeadlineExceeded instead of
    returning a partial document. Capture is cancelled as a task, which
    closes any browser session. Chunking and assembly run in worker threads
    and stop at their next band or block once the run's cancel event is set.
    """

    def __init__(self, source: ImageSource, options: PipelineOptions = None):
        self.source = source
        self.options = options or PipelineOptions.from_config()

    async def run(self, url: str, run: PipelineRun = None) -> bytes:
        """
        Produce the audit document for ``url``.

        Args:
            url: Page to capture
            run: Optional run record to observe state transitions

        Returns:
            The .docx payload

        Raises:
            PipelineError: On any failure, including an invalid URL
        """
        run = run or PipelineRun(url=url)
        started = time.monotonic()
        cancelled = threading.Event()
        try:
            url = validate_url(url)
            try:
                payload = await asyncio.wait_for(self._run_stages(url, run, started, cancelled),
                                                 timeout=self.options.deadline)
            except asyncio.TimeoutError:
                cancelled.set()
                raise DeadlineExceeded(
                    f"Audit timeout: exceeded {self.options.deadline:g}s deadline "
                    f"while {run.state.value}"
                )
        except AuditError as e:
            run.fail(e.reason)
            logger.warning("  > Audit failed for %s: %s", url, e.reason)
            raise to_pipeline_error(e) from e
        except Exception as e:
            run.fail(str(e))
            logger.exception("  > Unexpected error generating audit for %s", url)
            raise to_pipeline_error(e) from e

        run.advance(PipelineState.DONE)
        logger.info("  > Audit for %s finished in %.1fs", url, time.monotonic() - started)
        return payload

    async def _run_stages(self, url: str, run: PipelineRun, started: float,
                          cancelled: threading.Event) -> bytes:
        options = self.options

        run.advance(PipelineState.CAPTURING)
        remaining = options.deadline - (time.monotonic() - started)
        result = await self.source.capture(url, timeout=remaining)

        run.advance(PipelineState.CHUNKING)
        chunks = await asyncio.to_thread(to_chunks, result, options.chunk_height,
                                         options.jpeg_quality, cancelled=cancelled)

        run.advance(PipelineState.ASSEMBLING)
        return await asyncio.to_thread(assemble, url, chunks, result.width, options.display_width,
                                       cancelled=cancelled)


def create_pipeline(config=Config, strategy: str = None) -> AuditPipeline:
    return AuditPipeline(create_image_source(config, strategy), PipelineOptions.from_config(config))


async def main():
    """Generate an audit document from the command line."""
    import argparse

    parser = argparse.ArgumentParser(description='Generate a full-page screenshot audit document')
    parser.add_argument('url', help='URL to capture')
    parser.add_argument('--report-name', help='Name for the output document')
    parser.add_argument('--output-dir', type=Path, default=Path('.'), help='Directory to write the document to')
    parser.add_argument('--strategy', choices=['local', 'remote'], help='Capture strategy (overrides CAPTURE_STRATEGY)')
    args = parser.parse_args()

    configure_logging()
    Config.validate_config()

    pipeline = create_pipeline(Config, args.strategy)
    try:
        payload = await pipeline.run(args.url)
    except PipelineError as e:
        hint = " (safe to retry)" if e.retryable else ""
        print(f"--- FAILED to process {args.url}: {e}{hint} ---")
        raise SystemExit(1)

    args.output_dir.mkdir(parents=True, exist_ok=True)
    output_path = args.output_dir / sanitize_report_name(args.report_name)
    output_path.write_bytes(payload)
    print(f"--- Audit saved to {output_path} ({len(payload)} bytes) ---")


if __name__ == "__main__":
    asyncio.run(main())
