import logging
from typing import List

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from audit_report.errors import CaptureError, NavigationTimeout
from config import Config
from .base import ImageSource
from .chunker import chunk_bounds
from .models import CaptureResult

logger = logging.getLogger(__name__)

FULL_HEIGHT_SCRIPT = """() => {
    const body = document.body;
    const html = document.documentElement;
    return Math.max(
        body.scrollHeight, body.offsetHeight,
        html.clientHeight, html.scrollHeight, html.offsetHeight
    );
}"""


async def _create_page(browser, width: int, height: int):
    """Create a page with a fixed desktop viewport."""
    page = await browser.new_page(viewport={'width': width, 'height': height})
    await page.set_extra_http_headers({
        'Accept-Language': 'en-US,en;q=0.9',
    })
    return page


async def _load_page(page, url: str, timeout_ms: int):
    """Navigate and wait for the network to go idle."""
    logger.info("  > Navigating to %s", url)
    try:
        await page.goto(url, wait_until="networkidle", timeout=timeout_ms)
    except PlaywrightTimeoutError as e:
        raise NavigationTimeout(f"Navigation timeout of {timeout_ms}ms exceeded for {url}") from e
    except PlaywrightError as e:
        raise CaptureError(f"Navigation to {url} failed: {e}") from e


async def _trigger_lazy_loading(page, step: int, interval_ms: int, max_steps: int) -> int:
    """
    Scroll down in fixed steps until the scrolled distance reaches the page height.

    The page height is re-read on every step since lazy content grows it.
    Stops after ``max_steps`` even if the height keeps moving.

    Returns:
        Number of scroll steps taken
    """
    scrolled = 0
    for steps in range(1, max_steps + 1):
        scroll_height = await page.evaluate("document.body.scrollHeight")
        await page.evaluate(f"window.scrollBy(0, {step})")
        scrolled += step
        if scrolled >= scroll_height:
            return steps
        await page.wait_for_timeout(interval_ms)

    logger.warning("  > Lazy-load scroll stopped after %d steps without reaching page bottom", max_steps)
    return max_steps


async def _measure_full_height(page) -> int:
    height = await page.evaluate(FULL_HEIGHT_SCRIPT)
    try:
        return int(height)
    except (TypeError, ValueError) as e:
        raise CaptureError(f"Page reported an unusable height: {height!r}") from e


async def _capture_bands(page, full_height: int, band_height: int, width: int,
                         quality: int, paint_delay_ms: int) -> List[bytes]:
    """Scroll to each band and screenshot it as JPEG."""
    bands = []
    for offset_y, height in chunk_bounds(full_height, band_height):
        await page.evaluate(f"window.scrollTo(0, {offset_y})")
        await page.wait_for_timeout(paint_delay_ms)
        buffer = await page.screenshot(
            clip={'x': 0, 'y': offset_y, 'width': width, 'height': height},
            full_page=True,
            type='jpeg',
            quality=quality,
        )
        bands.append(buffer)
    return bands


class LocalRenderer(ImageSource):
    """
    Renders the page in headless Chromium and captures it band by band.

    Bands are captured at the chunk height directly, so the result needs no
    further splitting. The browser is closed on every exit path.
    """

    name = "local"

    def __init__(self, config=Config, launch_args: List[str] = None):
        self.config = config
        if launch_args is None:
            options = config.load_capture_options()
            env = 'production' if config.BROWSER_ENV == 'production' else 'development'
            launch_args = options.get('launch_args', {}).get(env, [])
        self.launch_args = list(launch_args)

    async def capture(self, url: str, timeout: float) -> CaptureResult:
        cfg = self.config
        navigation_timeout_ms = int(min(cfg.NAVIGATION_TIMEOUT_MS, timeout * 1000))

        async with async_playwright() as p:
            logger.info("  > Launching headless browser")
            try:
                browser = await p.chromium.launch(headless=True, args=self.launch_args)
            except PlaywrightError as e:
                raise CaptureError(f"Browser launch failed: {e}") from e

            try:
                page = await _create_page(browser, cfg.VIEWPORT_WIDTH, cfg.VIEWPORT_HEIGHT)
                await _load_page(page, url, navigation_timeout_ms)

                logger.info("  > Scrolling to trigger lazy-loaded content")
                await _trigger_lazy_loading(page, cfg.SCROLL_STEP_PX,
                                            cfg.SCROLL_INTERVAL_MS, cfg.SCROLL_MAX_STEPS)
                await page.wait_for_timeout(cfg.SETTLE_DELAY_MS)

                full_height = await _measure_full_height(page)
                if full_height <= 0:
                    raise CaptureError(f"Page at {url} has no height")
                logger.info("  > Full page height: %dpx", full_height)

                await page.evaluate("window.scrollTo(0, 0)")
                await page.wait_for_timeout(cfg.SCROLL_RESET_DELAY_MS)

                bands = await _capture_bands(page, full_height, cfg.CHUNK_HEIGHT,
                                             cfg.VIEWPORT_WIDTH, cfg.JPEG_QUALITY,
                                             cfg.PAINT_DELAY_MS)
                logger.info("  > Captured %d bands", len(bands))
            except PlaywrightError as e:
                # Includes timeouts after load; navigation timeouts come from _load_page
                raise CaptureError(f"Browser capture failed: {e}") from e
            finally:
                await browser.close()

        return CaptureResult(
            width=cfg.VIEWPORT_WIDTH,
            height=full_height,
            bands=bands,
            band_height=cfg.CHUNK_HEIGHT,
        )
