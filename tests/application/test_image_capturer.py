"""Tests for ImageCapturer."""

from io import BytesIO

import pytest
from PIL import Image

from core.application.services.image_capturer import DEFAULT_QUALITY, ImageCapturer, estimate_quality
from core.domain.enums.anchor_type import AnchorType, LocatorKind
from core.domain.enums.error_kind import ErrorKind
from core.domain.errors import CaptureError
from core.domain.value_objects import DetectedElement, Locator, RenderOptions
from tests.mocks.fake_page import FakeElement
from tests.mocks.fake_renderer import FakeRenderer, make_answer_image


def _anchor(elements=(FakeElement("answer"),)) -> DetectedElement:
    return DetectedElement(
        anchor_type=AnchorType.ANSWER_AREA,
        locator_used=Locator(LocatorKind.CLASS, ".answer-card"),
        match_count=len(elements),
        confidence=0.8,
        elements=tuple(elements),
    )


@pytest.mark.asyncio
async def test_capture_reencodes_as_jpeg_with_quality():
    capturer = ImageCapturer(FakeRenderer(make_answer_image(640, 360)))

    payload = await capturer.capture(_anchor())

    assert payload.mime_type == "image/jpeg"
    assert payload.data.startswith(b"\xff\xd8")
    assert payload.data_url.startswith("data:image/jpeg;base64,")
    assert payload.quality.estimated is True
    assert (payload.quality.width, payload.quality.height) == (640, 360)
    assert 0 <= payload.quality.score <= 100


@pytest.mark.asyncio
async def test_wide_images_are_downscaled():
    capturer = ImageCapturer(FakeRenderer(make_answer_image(2400, 600)), max_width=1200)

    payload = await capturer.capture(_anchor())

    with Image.open(BytesIO(payload.data)) as img:
        assert img.size == (1200, 300)


@pytest.mark.asyncio
async def test_undecodable_bytes_use_default_quality():
    capturer = ImageCapturer(FakeRenderer(b"not-an-image"))

    payload = await capturer.capture(_anchor())

    assert payload.quality == DEFAULT_QUALITY
    assert payload.data == b"not-an-image"


def test_tiny_blank_image_scores_low():
    blank = Image.new("RGB", (100, 50), (255, 255, 255))
    quality = estimate_quality(blank)
    blank.close()

    assert quality.contrast == 0
    assert quality.sharpness == 0
    assert quality.score < 60


@pytest.mark.asyncio
async def test_missing_renderer_raises():
    with pytest.raises(CaptureError):
        await ImageCapturer(None).capture(_anchor())


@pytest.mark.asyncio
async def test_anchor_without_elements_is_a_detection_error():
    with pytest.raises(CaptureError) as exc_info:
        await ImageCapturer(FakeRenderer()).capture(_anchor(elements=()))

    assert exc_info.value.kind is ErrorKind.ELEMENT_DETECTION


@pytest.mark.asyncio
async def test_render_timeout_is_a_network_error():
    capturer = ImageCapturer(FakeRenderer(delay=0.5), render_options=RenderOptions(timeout_ms=10))

    with pytest.raises(CaptureError) as exc_info:
        await capturer.capture(_anchor())

    assert exc_info.value.kind is ErrorKind.NETWORK


@pytest.mark.asyncio
async def test_render_failure_is_wrapped():
    capturer = ImageCapturer(FakeRenderer(error=ConnectionError("bridge gone")))

    with pytest.raises(CaptureError) as exc_info:
        await capturer.capture(_anchor())

    assert exc_info.value.kind is ErrorKind.NETWORK


@pytest.mark.asyncio
async def test_empty_render_raises():
    with pytest.raises(CaptureError):
        await ImageCapturer(FakeRenderer(b"")).capture(_anchor())
