"""Application DTOs."""

from .ai_response_dto import BreakdownItemDTO, RubricAnalysisDTO, ScoringResponseDTO

__all__ = [
    "BreakdownItemDTO",
    "RubricAnalysisDTO",
    "ScoringResponseDTO",
]
