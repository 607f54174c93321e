"""Fakes for the grading pipeline's injected capabilities."""
