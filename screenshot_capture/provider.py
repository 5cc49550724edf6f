import io
import logging

import httpx
from PIL import Image, UnidentifiedImageError

from audit_report.errors import CaptureError, InvalidImage
from config import Config
from .base import ImageSource
from .models import CaptureResult, RasterImage

logger = logging.getLogger(__name__)


class RemoteProvider(ImageSource):
    """
    Delegates rendering to a remote screenshot provider.

    The provider renders the full page and answers with an ``outputUrl``;
    a second request fetches the image bytes, which are decoded once to
    learn the dimensions. The result is a single image for the chunker.
    """

    name = "remote"

    def __init__(self, config=Config, client: httpx.AsyncClient = None, options: dict = None):
        self.config = config
        self.client = client
        if options is None:
            options = config.load_capture_options().get('screenshot_options', {}) or {}
        self.options = dict(options)

    def _build_request(self, url: str) -> dict:
        cfg = self.config
        return {
            "url": url,
            "fullPage": True,
            "autoScroll": True,
            "width": cfg.VIEWPORT_WIDTH,
            "height": cfg.VIEWPORT_HEIGHT,
            "outputFormat": "jpeg",
            "waitUntil": "load",
            "settleDelayMs": cfg.PROVIDER_SETTLE_DELAY_MS,
            **self.options,
        }

    def _headers(self) -> dict:
        if self.config.PROVIDER_API_KEY:
            return {"Authorization": f"Bearer {self.config.PROVIDER_API_KEY}"}
        return {}

    async def capture(self, url: str, timeout: float) -> CaptureResult:
        if not self.config.PROVIDER_ENDPOINT:
            raise CaptureError("Screenshot provider endpoint is not configured")

        if self.client is not None:
            return await self._capture_with(self.client, url, timeout)
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
            return await self._capture_with(client, url, timeout)

    async def _capture_with(self, client: httpx.AsyncClient, url: str, timeout: float) -> CaptureResult:
        logger.info("  > Requesting full-page screenshot from provider")
        try:
            response = await client.post(
                self.config.PROVIDER_ENDPOINT,
                json=self._build_request(url),
                headers=self._headers(),
                timeout=timeout,
            )
        except httpx.TimeoutException as e:
            raise CaptureError(f"Screenshot provider timeout after {timeout:.0f}s") from e
        except httpx.HTTPError as e:
            raise CaptureError(f"Screenshot provider request failed: {e}") from e

        if response.status_code != 200:
            raise CaptureError(
                f"Screenshot provider failed to capture screenshot "
                f"(HTTP {response.status_code}): {response.text[:200]}"
            )

        try:
            output_url = response.json().get("outputUrl")
        except ValueError as e:
            raise CaptureError("Screenshot provider returned a non-JSON response") from e
        if not output_url:
            raise CaptureError("Screenshot provider response has no outputUrl")

        logger.info("  > Fetching rendered image")
        try:
            image_response = await client.get(output_url, timeout=timeout)
        except httpx.TimeoutException as e:
            raise CaptureError(f"Timeout fetching rendered image from {output_url}") from e
        except httpx.HTTPError as e:
            raise CaptureError(f"Could not fetch rendered image: {e}") from e

        if image_response.status_code != 200 or not image_response.content:
            raise CaptureError(
                f"Rendered image at {output_url} could not be resolved "
                f"(HTTP {image_response.status_code})"
            )

        pixels = image_response.content
        try:
            with Image.open(io.BytesIO(pixels)) as img:
                width, height = img.size
                image_format = img.format or "JPEG"
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
            raise InvalidImage(f"Provider image could not be decoded: {e}") from e

        if width <= 0 or height <= 0:
            raise InvalidImage(f"Provider image has no area: {width}x{height}")
        logger.info("  > Provider image: %dx%d", width, height)

        image = RasterImage(width=width, height=height, pixels=pixels, format=image_format)
        return CaptureResult(width=width, height=height, image=image)
