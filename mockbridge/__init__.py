"""MockBridge.

This package serves operator-defined virtual HTTP endpoints ("mock routes") and
exposes configured outbound HTTP calls as tools over a slug-addressed JSON-RPC
(MCP) bridge.

High-level architecture
-----------------------

The codebase is organized around two flows:

- **Mock dispatch**: an inbound request is matched against stored route
  patterns, one route is selected by credential precedence (session scope,
  then API key, then public), and the route's response mode renders the
  response (static text, a template, or a dataset lookup).
- **Tool bridge**: a JSON-RPC request addressed to a tool server slug is
  framed, the server is selected with the same precedence, and ``tools/call``
  is turned into a configured outbound HTTP request.

Core subpackages
----------------

- ``mockbridge.core``:

  - Error hierarchy, logging configuration and domain enums.
  - SQLModel entities and async repositories.
  - Pydantic wire models of the administrative API.

- ``mockbridge.engine``:

  - Path matching, route resolution, dataset lookup and response rendering.

- ``mockbridge.tooling``:

  - Input schema generation, OpenAPI extraction, bulk tool import and the
    outbound HTTP executor.

- ``mockbridge.rpc``:

  - JSON-RPC 2.0 framing and MCP method dispatch.

- ``mockbridge.server``:

  - The FastAPI application and its routers.
"""
