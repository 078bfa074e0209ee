"""
Models package.

- domain/: enums and value types used by the engine
- io/: Pydantic request/response schemas for the administrative API
"""
