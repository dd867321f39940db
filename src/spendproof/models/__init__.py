"""Pydantic models for persisted artifacts."""
