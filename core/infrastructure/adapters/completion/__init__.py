from .openai_compatible_client import (
    OpenAICompatibleClient,
    OpenAITextCompletion,
    OpenAIVisionCompletion,
)

__all__ = ["OpenAICompatibleClient", "OpenAITextCompletion", "OpenAIVisionCompletion"]
