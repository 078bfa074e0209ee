"""HTTP tool execution

Overview
--------
Executes the outbound HTTP call configured by a ``Tool`` for a set of caller
arguments. Each request fragment is produced by a pure transform so it can be
checked without network access:

- ``apply_path_template``: ``{name}`` and ``:name`` tokens -> URL-encoded argument values
- ``build_query_params``: query mapping (destination -> argument key)
- ``build_body``: body mapping, or the whole argument object when the mapping is empty
- ``build_headers``: tool headers first, then auth-derived headers which always win
- ``build_url``: base URL + path + query (and the ``api_key_query`` credential)

Errors
------
Transport failures raise ``ToolExecutionError``. Upstream error statuses are
not errors here: they are returned verbatim in ``ToolCallResult``. Nothing is
retried.
"""

from __future__ import annotations

import base64
import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple
from urllib.parse import quote, urlencode

import httpx

from mockbridge.core.database.entities import ServerAuthConfig, Tool
from mockbridge.core.errors import ToolExecutionError
from mockbridge.core.logging_config import get_logger
from mockbridge.core.models.domain import AuthType

logger = get_logger(__name__)

_BRACE_TOKEN = re.compile(r"\{([^}]+)\}")
_COLON_TOKEN = re.compile(r":([A-Za-z0-9_]+)")

BODYLESS_METHODS = frozenset({"GET", "HEAD"})


def stringify(value: Any) -> str:
    """Render an argument value for a URL or header."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"))
    return str(value)


def apply_path_template(template: Optional[str], args: Mapping[str, Any]) -> str:
    """Substitute path tokens; tokens without an argument are left untouched."""

    def _sub(match: "re.Match[str]") -> str:
        key = match.group(1)
        if key not in args or args[key] is None:
            return match.group(0)
        return quote(stringify(args[key]), safe="")

    path = _BRACE_TOKEN.sub(_sub, template or "/")
    return _COLON_TOKEN.sub(_sub, path)


def build_query_params(mapping: Mapping[str, Any], args: Mapping[str, Any]) -> List[Tuple[str, str]]:
    """Query pairs for every mapping entry whose argument is defined and non-null."""
    pairs: List[Tuple[str, str]] = []
    for dest, arg_key in mapping.items():
        value = args.get(arg_key) if isinstance(arg_key, str) else None
        if value is not None:
            pairs.append((dest, stringify(value)))
    return pairs


def build_body(mapping: Mapping[str, Any], args: Mapping[str, Any], method: str) -> Optional[Dict[str, Any]]:
    """Request body, or None when the method carries no body.

    An empty mapping forwards every argument; otherwise only mapped arguments
    that were supplied are copied.
    """
    if method.upper() in BODYLESS_METHODS:
        return None
    if not mapping:
        return dict(args) if args else None
    return {dest: args[arg_key] for dest, arg_key in mapping.items() if isinstance(arg_key, str) and arg_key in args}


def auth_headers(auth_config: Optional[ServerAuthConfig]) -> Dict[str, str]:
    """Headers derived from a server's auth configuration, in application order."""
    if auth_config is None:
        return {}
    headers = dict(auth_config.get_extra_headers_dict())
    auth_type = AuthType(auth_config.auth_type)
    if auth_type == AuthType.api_key_header and auth_config.api_key_value:
        headers[auth_config.api_key_header_name or "X-API-Key"] = auth_config.api_key_value
    elif auth_type == AuthType.bearer_token and auth_config.bearer_token:
        headers["Authorization"] = f"Bearer {auth_config.bearer_token}"
    elif auth_type == AuthType.basic and (auth_config.basic_username or auth_config.basic_password):
        raw = f"{auth_config.basic_username or ''}:{auth_config.basic_password or ''}".encode("utf-8")
        headers["Authorization"] = f"Basic {base64.b64encode(raw).decode('ascii')}"
    return headers


def build_headers(
    mapping: Mapping[str, Any], args: Mapping[str, Any], auth_config: Optional[ServerAuthConfig] = None
) -> httpx.Headers:
    """Tool-declared headers overlaid case-insensitively by auth-derived headers.

    A mapping value is either a static string or ``{"fromArg": "<argument key>"}``.
    """
    headers = httpx.Headers()
    for name, spec in mapping.items():
        if isinstance(spec, dict):
            arg_key = spec.get("fromArg")
            value = args.get(arg_key) if arg_key else None
        else:
            value = spec
        if value is not None:
            headers[name] = stringify(value)
    for name, value in auth_headers(auth_config).items():
        headers[name] = value
    return headers


def build_url(
    base_url: str, path: str, query: List[Tuple[str, str]], auth_config: Optional[ServerAuthConfig] = None
) -> str:
    """Join base URL and path and append the query string."""
    if path and not path.startswith("/"):
        path = "/" + path
    url = (base_url or "").rstrip("/") + path

    pairs = list(query)
    if (
        auth_config is not None
        and AuthType(auth_config.auth_type) == AuthType.api_key_query
        and auth_config.api_key_query_value
    ):
        pairs.append((auth_config.api_key_query_name or "api_key", auth_config.api_key_query_value))

    if not pairs:
        return url
    return f"{url}{'&' if '?' in url else '?'}{urlencode(pairs)}"


@dataclass
class ToolCallResult:
    """Normalized upstream response; ``json`` is None when the body is not JSON."""

    status: int
    headers: Dict[str, str] = field(default_factory=dict)
    raw_body: str = ""
    json: Any = None

    @property
    def is_error(self) -> bool:
        return self.status >= 400


class HttpToolExecutor:
    """Perform configured tool calls with ``httpx.AsyncClient``.

    Args:
        client: Optional shared client; a short-lived client is created per call otherwise
        timeout: Timeout in seconds for calls made with an internal client
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None, *, timeout: float = 30.0) -> None:
        self._client = client
        self.timeout = timeout

    async def execute(
        self,
        tool: Tool,
        args: Optional[Mapping[str, Any]] = None,
        auth_config: Optional[ServerAuthConfig] = None,
        server_base_url: str = "",
    ) -> ToolCallResult:
        """Execute ``tool`` with ``args``.

        Raises:
            ToolExecutionError: The request could not be sent or no response was received
        """
        args = dict(args or {})
        method = (tool.http_method or "GET").upper()
        base_url = tool.base_url or server_base_url or ""

        path = apply_path_template(tool.path_template, args)
        query = build_query_params(tool.get_query_mapping_dict(), args)
        body = build_body(tool.get_body_mapping_dict(), args, method)
        headers = build_headers(tool.get_headers_mapping_dict(), args, auth_config)
        url = build_url(base_url, path, query, auth_config)

        content: Optional[bytes] = None
        if body is not None:
            content = json.dumps(body).encode("utf-8")
            headers.setdefault("Content-Type", "application/json")

        # Query strings may carry credentials; only the path is logged
        logger.info(f"Calling tool {tool.name}: {method} {base_url.rstrip('/')}{path}")
        try:
            if self._client is not None:
                response = await self._client.request(method, url, headers=headers, content=content)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.request(method, url, headers=headers, content=content)
        except (httpx.RequestError, httpx.InvalidURL) as e:
            logger.warning(f"Tool {tool.name} request failed: {type(e).__name__}: {e}")
            raise ToolExecutionError(f"Tool request failed: {e}", url=f"{base_url.rstrip('/')}{path}") from e

        text = response.text
        try:
            parsed = json.loads(text) if text else None
        except ValueError:
            parsed = None

        logger.debug(f"Tool {tool.name} responded with status {response.status_code}")
        return ToolCallResult(
            status=response.status_code,
            headers=dict(response.headers),
            raw_body=text,
            json=parsed,
        )
