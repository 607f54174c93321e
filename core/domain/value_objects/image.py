"""Captured image value objects."""

import base64
from dataclasses import dataclass


@dataclass(frozen=True)
class RenderOptions:
    """Options passed to the image renderer."""

    scale: float = 2.0
    background_color: str = "#ffffff"
    timeout_ms: int = 10_000


@dataclass(frozen=True)
class ImageQuality:
    """
    Coarse quality estimate of a captured image.

    ``estimated`` is False when the numbers come from fixed defaults
    instead of real pixel statistics.
    """

    score: int
    width: int
    height: int
    brightness: int
    contrast: int
    sharpness: int
    estimated: bool = True

    def to_dict(self) -> dict:
        return {
            "score": self.score,
            "dimensions": {"width": self.width, "height": self.height},
            "brightness": self.brightness,
            "contrast": self.contrast,
            "sharpness": self.sharpness,
            "estimated": self.estimated,
        }


@dataclass(frozen=True)
class ImagePayload:
    """Encoded answer-area image ready to send to the vision capability."""

    data: bytes
    quality: ImageQuality
    mime_type: str = "image/jpeg"

    @property
    def data_url(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"

    @property
    def size_bytes(self) -> int:
        return len(self.data)
