"""Pydantic schemas for API contracts and domain records."""
