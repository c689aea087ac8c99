"""
Models package - Pydantic models for type-safe configuration handling.

Defines data models for:
- Stack configuration and derived Azure resource names
- Azure SQL connection details
"""
