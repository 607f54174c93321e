"""
Error Kind Enum.

Classification used by the orchestrator to pick a recovery path.
"""
from enum import Enum


class ErrorKind(str, Enum):
    """Failure classes and their recovery policy."""

    NETWORK = "network"  # retry whole workflow
    ELEMENT_DETECTION = "element-detection"  # manual mode
    AI_SCORING = "ai-scoring"  # manual review
    UNKNOWN = "unknown"  # reported as workflow-error
