"""
Configuration Settings.

This module defines the application configuration using Pydantic's BaseSettings.
It automatically loads all configuration from environment variables and .env file
without explicit dotenv loading.
"""

from typing import Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# =====================================================================
# Grouped Configuration Models
# =====================================================================


class IdentityConfig(BaseModel):
    """Caller identity configuration."""

    api_key_header: str = Field(
        default="x-api-key",
        alias="MOCKBRIDGE_API_KEY_HEADER",
        description="Request header carrying a caller-supplied API key",
    )
    trust_identity_headers: bool = Field(
        default=False,
        alias="MOCKBRIDGE_TRUST_IDENTITY_HEADERS",
        description="Read tenant/project identity from request headers (only behind a trusted auth proxy)",
    )
    tenant_header: str = Field(
        default="x-tenant-id",
        alias="MOCKBRIDGE_TENANT_HEADER",
        description="Header carrying the authenticated tenant id",
    )
    project_header: str = Field(
        default="x-project-id",
        alias="MOCKBRIDGE_PROJECT_HEADER",
        description="Header carrying the authenticated project id",
    )

    model_config = {"populate_by_name": True}


class MCPBridgeConfig(BaseModel):
    """JSON-RPC bridge configuration."""

    protocol_version: str = Field(
        default="2024-11-05",
        alias="MOCKBRIDGE_MCP_PROTOCOL_VERSION",
        description="Default MCP protocol version reported by initialize",
    )
    server_version: str = Field(
        default="0.1.0",
        alias="MOCKBRIDGE_MCP_SERVER_VERSION",
        description="Version reported in serverInfo",
    )
    tool_timeout_seconds: float = Field(
        default=30.0,
        alias="MOCKBRIDGE_TOOL_TIMEOUT_SECONDS",
        description="Timeout for outbound tool HTTP calls",
    )

    model_config = {"populate_by_name": True}


class CORSConfig(BaseModel):
    """CORS configuration."""

    origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS", description="Allowed CORS origins (use * for all)")
    allow_credentials: bool = Field(
        default=True, alias="CORS_ALLOW_CREDENTIALS", description="Allow credentials in CORS requests"
    )
    allow_methods: list[str] = Field(
        default=["*"], alias="CORS_ALLOW_METHODS", description="Allowed HTTP methods (use * for all)"
    )
    allow_headers: list[str] = Field(
        default=["*"], alias="CORS_ALLOW_HEADERS", description="Allowed HTTP headers (use * for all)"
    )

    model_config = {"populate_by_name": True}


# =====================================================================
# Main Settings Class
# =====================================================================


class Settings(BaseSettings):
    """
    Application settings model.

    All properties are automatically bound from environment variables and .env file.
    Pydantic's BaseSettings handles dotenv loading automatically via model_config.
    """

    # =====================================================================
    # Pydantic Configuration
    # =====================================================================
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
        populate_by_name=True,
    )

    # =====================================================================
    # MockBridge Server Configuration
    # =====================================================================
    server_host: str = Field(
        default="0.0.0.0",
        description="MockBridge server host address to bind to",
        alias="MOCKBRIDGE_SERVER_HOST",
    )
    server_port: int = Field(
        default=8000,
        description="MockBridge server port number",
        alias="MOCKBRIDGE_SERVER_PORT",
    )
    log_level: str = Field(
        default="INFO",
        description="MockBridge logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
        alias="MOCKBRIDGE_LOG_LEVEL",
    )
    log_format: str = Field(
        default="detailed",
        description="Log format (simple, detailed, json)",
        alias="MOCKBRIDGE_LOG_FORMAT",
    )
    log_file_dir: Optional[str] = Field(
        default=None,
        description="Directory for the log file; file logging is disabled when unset",
        alias="MOCKBRIDGE_LOG_FILE_DIR",
    )

    # =====================================================================
    # Database Configuration
    # =====================================================================
    database_url: str = Field(
        default="sqlite+aiosqlite:///./mockbridge.db",
        description="Async connection URL for the application database",
        alias="MOCKBRIDGE_DATABASE_URL",
    )

    # =====================================================================
    # Flat fields backing the grouped configurations below
    # =====================================================================
    api_key_header: str = Field(default="x-api-key", alias="MOCKBRIDGE_API_KEY_HEADER")
    trust_identity_headers: bool = Field(default=False, alias="MOCKBRIDGE_TRUST_IDENTITY_HEADERS")
    tenant_header: str = Field(default="x-tenant-id", alias="MOCKBRIDGE_TENANT_HEADER")
    project_header: str = Field(default="x-project-id", alias="MOCKBRIDGE_PROJECT_HEADER")
    mcp_protocol_version: str = Field(default="2024-11-05", alias="MOCKBRIDGE_MCP_PROTOCOL_VERSION")
    mcp_server_version: str = Field(default="0.1.0", alias="MOCKBRIDGE_MCP_SERVER_VERSION")
    tool_timeout_seconds: float = Field(default=30.0, alias="MOCKBRIDGE_TOOL_TIMEOUT_SECONDS")
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(default=["*"], alias="CORS_ALLOW_METHODS")
    cors_allow_headers: list[str] = Field(default=["*"], alias="CORS_ALLOW_HEADERS")

    # =====================================================================
    # Computed Properties (Grouped Configurations)
    # =====================================================================

    @property
    def identity(self) -> IdentityConfig:
        """Get caller identity configuration from environment variables."""
        return IdentityConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def mcp(self) -> MCPBridgeConfig:
        """Get JSON-RPC bridge configuration from environment variables."""
        return MCPBridgeConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def cors(self) -> CORSConfig:
        """Get CORS configuration from environment variables."""
        return CORSConfig.model_validate(self.model_dump(by_alias=True))


settings = Settings()
