"""Version 1 routers: health, mock dispatch, MCP bridge and administration."""
