"""
Main Application Entry Point.

This module initializes the FastAPI application, configures middleware (CORS)
and exception handlers, and includes all API routers. The mock catch-all router
is included last so that it only sees paths no other router claims.
"""

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mockbridge.core.database import init_db
from mockbridge.core.logging_config import get_logger, setup_logging

from .api.v1 import datasets, health, mcp, mock, routes, tool_servers
from .core import constant
from .core.config import settings
from .exception_handlers import setup_exception_handlers

# Initialize logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events.

    Creates missing tables on startup.
    """
    # Startup
    try:
        logger.info("Starting up MockBridge Server...")
        await init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}", exc_info=True)

    yield

    # Shutdown
    logger.info("Shutting down MockBridge Server...")


app = FastAPI(
    title=constant.PROJECT_NAME,
    description="""
    MockBridge Server API

    Serves operator-defined mock HTTP routes and exposes configured outbound
    HTTP calls as MCP tools over slug-addressed JSON-RPC endpoints.
    """,
    version=settings.mcp.server_version,
    openapi_url=f"{constant.API_V1_STR}/openapi.json",
    docs_url=f"{constant.API_V1_STR}/docs",
    redoc_url=f"{constant.API_V1_STR}/redoc",
    lifespan=lifespan,
)

cors = settings.cors
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors.origins,
    allow_credentials=cors.allow_credentials,
    allow_methods=cors.allow_methods,
    allow_headers=cors.allow_headers,
)

setup_exception_handlers(app)

app.include_router(health.router, tags=["health"])
app.include_router(routes.router, prefix=f"{constant.API_V1_STR}/routes", tags=["routes"])
app.include_router(datasets.router, prefix=f"{constant.API_V1_STR}/routes", tags=["datasets"])
app.include_router(tool_servers.router, prefix=f"{constant.API_V1_STR}/tool-servers", tags=["tool-servers"])
app.include_router(mcp.router, prefix=constant.MCP_PREFIX, tags=["mcp"])
# Must stay last
app.include_router(mock.router, tags=["mock"])


def run() -> None:
    """Serve the application with uvicorn using the configured host and port."""
    uvicorn.run(
        "mockbridge.server.main:app",
        host=settings.server_host,
        port=settings.server_port,
        log_level=settings.log_level.lower(),
    )
