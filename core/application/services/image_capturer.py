"""
Image Capturer.

Renders the answer area, re-encodes it as JPEG and estimates its quality.
"""
import asyncio
import logging
from io import BytesIO
from typing import Optional

from PIL import Image, ImageFilter, ImageStat, UnidentifiedImageError

from core.application.interfaces import IImageRenderer
from core.domain.enums.error_kind import ErrorKind
from core.domain.errors import CaptureError, classify_error
from core.domain.value_objects import DetectedElement, ImagePayload, ImageQuality, RenderOptions


logger = logging.getLogger(__name__)


# Used when the rendered bytes cannot be analysed
DEFAULT_QUALITY = ImageQuality(
    score=85,
    width=800,
    height=600,
    brightness=75,
    contrast=80,
    sharpness=70,
    estimated=False,
)

_PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def _sniff_mime(data: bytes) -> str:
    if data.startswith(_PNG_SIGNATURE):
        return "image/png"
    if data.startswith(b"\xff\xd8"):
        return "image/jpeg"
    return "application/octet-stream"


def estimate_quality(image: Image.Image) -> ImageQuality:
    """
    Estimate quality from pixel statistics.

    brightness: mean luminance in percent
    contrast: luminance standard deviation, 64 levels counting as 100
    sharpness: mean edge response, 32 levels counting as 100
    """
    gray = image.convert("L")
    try:
        stat = ImageStat.Stat(gray)
        brightness = round(stat.mean[0] / 255 * 100)
        contrast = min(100, round(stat.stddev[0] / 64 * 100))

        # The filter copies border pixels unchanged, so only the interior counts
        edges = gray.filter(ImageFilter.FIND_EDGES)
        width, height = gray.size
        interior = edges.crop((1, 1, width - 1, height - 1)) if width > 2 and height > 2 else edges
        try:
            sharpness = min(100, round(ImageStat.Stat(interior).mean[0] / 32 * 100))
        finally:
            if interior is not edges:
                interior.close()
            edges.close()
    finally:
        gray.close()

    width, height = image.size
    brightness_score = max(0, 100 - abs(brightness - 70) * 2)
    score = round(0.3 * brightness_score + 0.4 * contrast + 0.3 * sharpness)
    if width < 200 or height < 100:
        score -= 20

    return ImageQuality(
        score=max(0, min(100, score)),
        width=width,
        height=height,
        brightness=brightness,
        contrast=contrast,
        sharpness=sharpness,
        estimated=True,
    )


class ImageCapturer:
    """
    Captures the answer area of a detected anchor.

    Usage:
        capturer = ImageCapturer(renderer)
        payload = await capturer.capture(anchor)
    """

    def __init__(
        self,
        renderer: Optional[IImageRenderer],
        render_options: Optional[RenderOptions] = None,
        jpeg_quality: int = 85,
        max_width: int = 1600,
    ):
        """
        Initialize capturer.

        Args:
            renderer: Rendering backend (None when unavailable)
            render_options: Scale, background colour and timeout for rendering
            jpeg_quality: JPEG quality of the re-encoded image
            max_width: Wider images are downscaled to this width
        """
        self.renderer = renderer
        self.render_options = render_options or RenderOptions()
        self.jpeg_quality = jpeg_quality
        self.max_width = max_width

    async def capture(self, anchor: DetectedElement) -> ImagePayload:
        """
        Render and encode the anchor's first element.

        Raises:
            CaptureError: If there is nothing to render, the backend is
                unavailable, the render fails or times out
        """
        if anchor.primary is None:
            raise CaptureError(
                f"No element to capture for {anchor.anchor_type.value}",
                kind=ErrorKind.ELEMENT_DETECTION,
            )
        if self.renderer is None:
            raise CaptureError("Image renderer is not available")

        timeout = self.render_options.timeout_ms / 1000
        try:
            raw = await asyncio.wait_for(
                self.renderer.render(anchor.primary, self.render_options), timeout=timeout
            )
        except asyncio.TimeoutError:
            raise CaptureError(
                f"Image rendering timed out after {self.render_options.timeout_ms} ms",
                kind=ErrorKind.NETWORK,
            )
        except CaptureError:
            raise
        except Exception as e:
            raise CaptureError(f"Image rendering failed: {e}", kind=classify_error(e)) from e

        if not raw:
            raise CaptureError("Image renderer returned no data")

        payload = self._encode(raw)
        logger.info(
            f"Answer area captured: {payload.quality.width}x{payload.quality.height}, "
            f"{payload.size_bytes} bytes, quality={payload.quality.score}"
        )
        return payload

    def _encode(self, raw: bytes) -> ImagePayload:
        try:
            opened = Image.open(BytesIO(raw))
            opened.load()
        except (UnidentifiedImageError, OSError) as e:
            logger.warning(f"Image analysis unavailable, using default quality: {e}")
            return ImagePayload(data=raw, quality=DEFAULT_QUALITY, mime_type=_sniff_mime(raw))

        img = None
        try:
            img = opened.convert("RGB")
            width, height = img.size
            if width > self.max_width:
                resized = img.resize(
                    (self.max_width, int(height * self.max_width / width)),
                    Image.Resampling.LANCZOS,
                )
                img.close()
                img = resized

            quality = estimate_quality(img)
            buffered = BytesIO()
            img.save(buffered, format="JPEG", quality=self.jpeg_quality)
            return ImagePayload(data=buffered.getvalue(), quality=quality)
        finally:
            opened.close()
            if img is not None:
                img.close()
