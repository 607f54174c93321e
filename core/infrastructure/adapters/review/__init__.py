from .in_memory_review_sink import InMemoryReviewSink

__all__ = ["InMemoryReviewSink"]
