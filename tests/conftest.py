"""Pytest configuration and fixtures."""
import asyncio
import io

import pytest
from PIL import Image

from config import Config
from screenshot_capture.base import ImageSource
from screenshot_capture.browser import FULL_HEIGHT_SCRIPT
from screenshot_capture.models import CaptureResult, ImageChunk, RasterImage


class FastConfig(Config):
    """Small viewport and no waits, so tests run quickly."""

    CAPTURE_STRATEGY = 'local'
    VIEWPORT_WIDTH = 320
    VIEWPORT_HEIGHT = 200
    CHUNK_HEIGHT = 300
    DISPLAY_WIDTH = 600
    NAVIGATION_TIMEOUT_MS = 5000
    PIPELINE_DEADLINE_S = 5
    SCROLL_STEP_PX = 100
    SCROLL_INTERVAL_MS = 0
    SCROLL_MAX_STEPS = 50
    SETTLE_DELAY_MS = 0
    SCROLL_RESET_DELAY_MS = 0
    PAINT_DELAY_MS = 0
    PROVIDER_ENDPOINT = 'https://provider.test/render'
    PROVIDER_API_KEY = 'test-key'


def make_jpeg(width: int, height: int, color=(200, 30, 30)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format="JPEG", quality=80)
    return buffer.getvalue()


def make_chunks(heights, width: int = 40):
    chunks = []
    offset = 0
    for index, height in enumerate(heights):
        chunks.append(ImageChunk(index=index, offset_y=offset, height=height,
                                 pixels=make_jpeg(width, height)))
        offset += height
    return chunks


class FakeSource(ImageSource):
    """ImageSource returning a prepared result, or raising, or hanging."""

    name = "fake"

    def __init__(self, result: CaptureResult = None, error: Exception = None, delay: float = 0):
        self.result = result
        self.error = error
        self.delay = delay
        self.calls = []
        self.cancelled = False

    async def capture(self, url: str, timeout: float) -> CaptureResult:
        self.calls.append((url, timeout))
        if self.delay:
            try:
                await asyncio.sleep(self.delay)
            except asyncio.CancelledError:
                self.cancelled = True
                raise
        if self.error:
            raise self.error
        return self.result


class FakePage:
    """Stands in for a Playwright page on a document of fixed height."""

    def __init__(self, full_height: int, scroll_height: int = None, goto_error: Exception = None,
                 screenshot_error: Exception = None, wait_delay: float = 0):
        self.full_height = full_height
        self.scroll_height = full_height if scroll_height is None else scroll_height
        self.goto_error = goto_error
        self.screenshot_error = screenshot_error
        self.wait_delay = wait_delay
        self.goto_calls = []
        self.scripts = []
        self.clips = []

    async def set_extra_http_headers(self, headers):
        pass

    async def goto(self, url, wait_until=None, timeout=None):
        self.goto_calls.append({'url': url, 'wait_until': wait_until, 'timeout': timeout})
        if self.goto_error:
            raise self.goto_error

    async def evaluate(self, script):
        self.scripts.append(script)
        if script == "document.body.scrollHeight":
            return self.scroll_height
        if script == FULL_HEIGHT_SCRIPT:
            return self.full_height
        return None

    async def wait_for_timeout(self, ms):
        if self.wait_delay:
            await asyncio.sleep(self.wait_delay)

    async def screenshot(self, clip=None, full_page=False, type='png', quality=None):
        if self.screenshot_error:
            raise self.screenshot_error
        self.clips.append(clip)
        return make_jpeg(int(clip['width']), int(clip['height']))


class FakeBrowser:
    def __init__(self, page: FakePage):
        self.page = page
        self.viewport = None
        self.closed = False

    async def new_page(self, viewport=None, **kwargs):
        self.viewport = viewport
        return self.page

    async def close(self):
        self.closed = True


class FakeChromium:
    def __init__(self, browser: FakeBrowser, launch_error: Exception = None):
        self.browser = browser
        self.launch_error = launch_error
        self.launch_args = None

    async def launch(self, headless=True, args=None, **kwargs):
        if self.launch_error:
            raise self.launch_error
        self.launch_args = args
        return self.browser


class FakePlaywright:
    """Replacement for ``async_playwright()``."""

    def __init__(self, chromium: FakeChromium):
        self.chromium = chromium

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


@pytest.fixture
def fast_config():
    return FastConfig


@pytest.fixture
def raster_image():
    """A 320x650 full-page capture."""
    return RasterImage(width=320, height=650, pixels=make_jpeg(320, 650))


@pytest.fixture
def fake_browser_factory(monkeypatch):
    """Patch Playwright with fakes; returns a builder taking FakePage kwargs."""

    def build(full_height: int, launch_error: Exception = None, **page_kwargs):
        page = FakePage(full_height, **page_kwargs)
        browser = FakeBrowser(page)
        chromium = FakeChromium(browser, launch_error=launch_error)
        monkeypatch.setattr("screenshot_capture.browser.async_playwright",
                            lambda: FakePlaywright(chromium))
        return chromium, browser, page

    return build
