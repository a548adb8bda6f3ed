"""Pydantic models for the puzzle API."""
