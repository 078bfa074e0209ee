"""Server-wide constants."""

PROJECT_NAME = "MockBridge"
API_V1_STR = "/api/v1"
MCP_PREFIX = "/mcp"
