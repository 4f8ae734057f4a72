"""Pydantic schemas for taxonomy records, option groups and criteria."""
