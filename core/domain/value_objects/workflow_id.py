"""Workflow identifier value object."""

import secrets
import string
import time
from dataclasses import dataclass

_ALPHABET = string.digits + string.ascii_lowercase


@dataclass(frozen=True)
class WorkflowID:
    """Unique identifier of one grading workflow."""

    value: str

    @classmethod
    def generate(cls) -> "WorkflowID":
        """Generate a new id of the form ``workflow-<epoch ms>-<9 base36 chars>``."""
        suffix = "".join(secrets.choice(_ALPHABET) for _ in range(9))
        return cls(value=f"workflow-{int(time.time() * 1000)}-{suffix}")

    def __str__(self) -> str:
        return self.value
