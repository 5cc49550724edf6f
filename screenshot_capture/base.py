from abc import ABC, abstractmethod
from urllib.parse import urlparse

from audit_report.errors import InputError
from .models import CaptureResult


def validate_url(url) -> str:
    """Return ``url`` stripped, or raise InputError if it is not an absolute http(s) URL."""
    if not url or not isinstance(url, str) or not url.strip():
        raise InputError("URL is required")
    url = url.strip()
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InputError(f"Invalid URL: {url}")
    return url


class ImageSource(ABC):
    """
    Acquires one full-page raster of a web page.

    Capture is all-or-nothing: implementations either return a complete
    CaptureResult or raise CaptureError (or one of its subclasses).
    """

    name = "base"

    @abstractmethod
    async def capture(self, url: str, timeout: float) -> CaptureResult:
        """
        Render ``url`` and return its full-page capture.

        Args:
            url: Absolute http(s) URL of the page
            timeout: Seconds the capture may take before it must give up
        """
        raise NotImplementedError
