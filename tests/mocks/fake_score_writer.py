"""Fake score writer recording what would be typed into the page."""
from typing import Optional

from core.application.interfaces import IScoreWriter


class FakeScoreWriter(IScoreWriter):
    def __init__(self, submit_result: bool = True, write_error: Optional[Exception] = None):
        self.submit_result = submit_result
        self.write_error = write_error
        self.writes: list[tuple] = []
        self.submits: list[object] = []

    async def write(self, element, score: float) -> None:
        if self.write_error is not None:
            raise self.write_error
        self.writes.append((element, score))

    async def submit(self, element) -> bool:
        self.submits.append(element)
        return self.submit_result
