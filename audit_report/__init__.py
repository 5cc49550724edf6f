"""
Audit Report Module

Turns a web page into a .docx audit: a bold title naming the URL followed by
the page's full-page screenshot, stacked in bands at a fixed display width.

Usage:
    from audit_report.pipeline import create_pipeline

    pipeline = create_pipeline()
    payload = await pipeline.run("https://example.com")
"""

from .errors import (
    AuditError,
    CaptureError,
    DeadlineExceeded,
    EmptyInput,
    InputError,
    InvalidImage,
    NavigationTimeout,
    PipelineError,
)
from .filenames import sanitize_report_name

__all__ = [
    'AuditError', 'CaptureError', 'DeadlineExceeded', 'EmptyInput', 'InputError',
    'InvalidImage', 'NavigationTimeout', 'PipelineError', 'sanitize_report_name',
]
