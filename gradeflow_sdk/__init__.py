"""Shared helpers for the gradeflow packages."""
