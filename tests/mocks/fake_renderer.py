"""Fake image renderer producing real image bytes with Pillow."""
import asyncio
from io import BytesIO
from typing import Optional

from PIL import Image, ImageDraw

from core.application.interfaces import IImageRenderer
from core.domain.value_objects import RenderOptions


def make_answer_image(width: int = 640, height: int = 360, fmt: str = "PNG") -> bytes:
    """Dark handwriting-like strokes on a light background."""
    img = Image.new("RGB", (width, height), (235, 235, 235))
    draw = ImageDraw.Draw(img)
    for row in range(20, height - 20, 30):
        draw.line((20, row, width - 20, row + 5), fill=(20, 20, 20), width=3)
    buffered = BytesIO()
    img.save(buffered, format=fmt)
    img.close()
    return buffered.getvalue()


class FakeRenderer(IImageRenderer):
    """Returns fixed bytes, optionally failing or stalling."""

    def __init__(
        self,
        data: Optional[bytes] = None,
        error: Optional[Exception] = None,
        delay: float = 0.0,
    ):
        self.data = make_answer_image() if data is None else data
        self.error = error
        self.delay = delay
        self.calls = 0

    async def render(self, element, options: RenderOptions) -> bytes:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.data
