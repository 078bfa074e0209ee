"""
MockBridge HTTP server.

FastAPI application serving the mock catch-all, the slug-addressed JSON-RPC
bridge and the administrative API.
"""
