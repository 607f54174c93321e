"""Gradeflow core - domain, application services, infrastructure adapters and settings."""
