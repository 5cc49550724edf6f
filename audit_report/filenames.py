import re

DEFAULT_REPORT_NAME = "audit-report"
DOCX_EXTENSION = ".docx"

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9\s\-_]")


def sanitize_report_name(report_name) -> str:
    """
    Turn an optional user-supplied report name into a .docx filename.

    Anything outside letters, digits, whitespace, hyphen and underscore is
    dropped. A name that is missing or blank after stripping falls back to
    ``audit-report.docx``.
    """
    if not report_name or not isinstance(report_name, str):
        return DEFAULT_REPORT_NAME + DOCX_EXTENSION
    # Whitespace runs collapse to single spaces
    safe_name = " ".join(_UNSAFE_CHARS.sub("", report_name).split())
    return (safe_name or DEFAULT_REPORT_NAME) + DOCX_EXTENSION
