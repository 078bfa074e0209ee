"""Domain models shared across the engine, the tool bridge and the server."""

from .enums import AuthType, HttpMethod, ResponseMode, SUPPORTED_MOCK_METHODS, ToolSourceType

__all__ = [
    "AuthType",
    "HttpMethod",
    "ResponseMode",
    "SUPPORTED_MOCK_METHODS",
    "ToolSourceType",
]
