"""Tests for the remote screenshot provider."""
import json

import httpx
import pytest
from PIL import Image

from audit_report.errors import CaptureError, InvalidImage
from conftest import make_jpeg
from screenshot_capture.provider import RemoteProvider

OUTPUT_URL = "https://cdn.provider.test/shots/abc.jpg"


def provider_transport(render_status=200, render_body=None, image_status=200, image_body=None,
                       requests=None):
    image_body = make_jpeg(320, 700) if image_body is None else image_body
    render_body = {"outputUrl": OUTPUT_URL} if render_body is None else render_body

    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        if request.method == "POST":
            if isinstance(render_body, (bytes, str)):
                return httpx.Response(render_status, content=render_body)
            return httpx.Response(render_status, json=render_body)
        return httpx.Response(image_status, content=image_body)

    return httpx.MockTransport(handler)


def make_provider(config, transport, options=None):
    client = httpx.AsyncClient(transport=transport)
    return RemoteProvider(config=config, client=client, options=options or {})


class TestRemoteProvider:
    """Tests for RemoteProvider.capture."""

    async def test_returns_single_decoded_image(self, fast_config):
        provider = make_provider(fast_config, provider_transport())

        result = await provider.capture("https://example.com", timeout=5)

        assert not result.is_banded
        assert (result.width, result.height) == (320, 700)
        assert (result.image.width, result.image.height) == (320, 700)
        assert result.image.format == "JPEG"

    async def test_request_asks_for_full_page(self, fast_config):
        requests = []
        provider = make_provider(fast_config, provider_transport(requests=requests),
                                 options={"block_ads": True})

        await provider.capture("https://example.com", timeout=5)

        render, fetch = requests
        body = json.loads(render.content)
        assert body == {
            "url": "https://example.com",
            "fullPage": True,
            "autoScroll": True,
            "width": 320,
            "height": 200,
            "outputFormat": "jpeg",
            "waitUntil": "load",
            "settleDelayMs": fast_config.PROVIDER_SETTLE_DELAY_MS,
            "block_ads": True,
        }
        assert render.headers["Authorization"] == "Bearer test-key"
        assert str(render.url) == fast_config.PROVIDER_ENDPOINT
        assert str(fetch.url) == OUTPUT_URL

    async def test_non_success_response(self, fast_config):
        provider = make_provider(fast_config, provider_transport(render_status=502, render_body="bad gateway"))
        with pytest.raises(CaptureError, match="HTTP 502"):
            await provider.capture("https://example.com", timeout=5)

    async def test_missing_output_url(self, fast_config):
        provider = make_provider(fast_config, provider_transport(render_body={"status": "queued"}))
        with pytest.raises(CaptureError, match="outputUrl"):
            await provider.capture("https://example.com", timeout=5)

    async def test_unresolvable_image(self, fast_config):
        provider = make_provider(fast_config, provider_transport(image_status=404, image_body=b""))
        with pytest.raises(CaptureError, match="could not be resolved"):
            await provider.capture("https://example.com", timeout=5)

    async def test_undecodable_image(self, fast_config):
        provider = make_provider(fast_config, provider_transport(image_body=b"<html>oops</html>"))
        with pytest.raises(InvalidImage):
            await provider.capture("https://example.com", timeout=5)

    async def test_oversized_image(self, fast_config, monkeypatch):
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
        provider = make_provider(fast_config, provider_transport())
        with pytest.raises(InvalidImage, match="could not be decoded"):
            await provider.capture("https://example.com", timeout=5)

    async def test_provider_timeout(self, fast_config):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        provider = make_provider(fast_config, httpx.MockTransport(handler))
        with pytest.raises(CaptureError, match="timeout"):
            await provider.capture("https://example.com", timeout=5)

    async def test_missing_endpoint(self, fast_config):
        class NoEndpoint(fast_config):
            PROVIDER_ENDPOINT = ''

        provider = make_provider(NoEndpoint, provider_transport())
        with pytest.raises(CaptureError, match="not configured"):
            await provider.capture("https://example.com", timeout=5)

    def test_options_load_from_yaml(self, fast_config):
        provider = RemoteProvider(config=fast_config)
        assert provider.options["block_ads"] is True
