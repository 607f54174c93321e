"""Page detection value objects."""

from dataclasses import dataclass, field
from typing import Optional

from ..enums.anchor_type import AnchorType, LocatorKind


@dataclass(frozen=True)
class Locator:
    """
    One strategy for finding an anchor on the host page.

    ``query`` is a CSS selector. TEXT locators additionally filter the
    matches of ``query`` by the visible ``text`` they contain.
    """

    kind: LocatorKind
    query: str
    text: Optional[str] = None

    @property
    def is_dynamic(self) -> bool:
        """Framework-generated classes (``ng-*``) are unstable between renders."""
        return self.kind is LocatorKind.CLASS and "ng-" in self.query

    def __str__(self) -> str:
        if self.text:
            return f'{self.query}:contains("{self.text}")'
        return self.query


@dataclass(frozen=True)
class DetectedElement:
    """An anchor found on the host page with its detection confidence."""

    anchor_type: AnchorType
    locator_used: Locator
    match_count: int
    confidence: float
    visible_count: int = 0
    elements: tuple = field(default=(), compare=False, repr=False)

    @property
    def primary(self) -> Optional[object]:
        """First matched element, the one the pipeline acts on."""
        return self.elements[0] if self.elements else None

    def describe(self) -> dict:
        return {
            "anchor_type": self.anchor_type.value,
            "locator": str(self.locator_used),
            "match_count": self.match_count,
            "confidence": self.confidence,
        }
