"""
Path pattern compilation and matching for mock routes.

Patterns are slash-separated segments. A segment is either a literal, a named
parameter (``:name`` or ``{name}``) or an optional named parameter
(``:name?``). A parameter captures exactly one non-empty path segment and is
percent-decoded; an absent optional parameter is reported with value ``None``.

Patterns are validated by ``compile_path`` so that malformed definitions are
rejected when a route is registered; ``PathMatcher.match`` itself never raises.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Generic, Iterable, List, Optional, Protocol, Tuple, TypeVar
from urllib.parse import unquote

from mockbridge.core.errors import InvalidPathPatternError
from mockbridge.core.logging_config import get_logger

logger = get_logger(__name__)

_COLON_PARAM = re.compile(r"^:([A-Za-z0-9_]+)(\?)?$")
_BRACE_PARAM = re.compile(r"^\{([A-Za-z0-9_]+)\}$")

PathParams = Dict[str, Optional[str]]


def normalize_path(value: Optional[str]) -> str:
    """Ensure a single leading slash and strip trailing slashes (except for the root)."""
    path = value or "/"
    path = "/" + path.lstrip("/")
    if len(path) > 1:
        path = path.rstrip("/") or "/"
    return path


def _split(path: str) -> List[str]:
    return [] if path == "/" else path[1:].split("/")


@dataclass(frozen=True)
class _Segment:
    literal: Optional[str] = None
    name: Optional[str] = None
    optional: bool = False


def _parse_segment(pattern: str, raw: str) -> _Segment:
    if raw == "":
        raise InvalidPathPatternError(pattern, "empty path segment")
    if raw.startswith(":"):
        m = _COLON_PARAM.match(raw)
        if not m:
            raise InvalidPathPatternError(pattern, f"invalid parameter segment {raw!r}")
        return _Segment(name=m.group(1), optional=bool(m.group(2)))
    if "{" in raw or "}" in raw:
        m = _BRACE_PARAM.match(raw)
        if not m:
            raise InvalidPathPatternError(pattern, f"unbalanced or invalid brace segment {raw!r}")
        return _Segment(name=m.group(1))
    if "?" in raw or "*" in raw:
        raise InvalidPathPatternError(pattern, f"unsupported modifier in segment {raw!r}")
    return _Segment(literal=raw)


class PathMatcher:
    """Compiled matcher for one path pattern."""

    def __init__(self, pattern: str, segments: List[_Segment]) -> None:
        self.pattern = pattern
        self._segments = segments

    @property
    def param_names(self) -> List[str]:
        return [s.name for s in self._segments if s.name]

    def match(self, path: Optional[str]) -> Optional[PathParams]:
        """Match a request path.

        Args:
            path: Request path; normalized before matching

        Returns:
            Parameter bindings, or None when the path does not match
        """
        parts = _split(normalize_path(path))
        params: PathParams = {}
        if self._match_from(0, parts, 0, params):
            return params
        return None

    def _match_from(self, seg_idx: int, parts: List[str], part_idx: int, params: PathParams) -> bool:
        if seg_idx == len(self._segments):
            return part_idx == len(parts)

        segment = self._segments[seg_idx]
        available = part_idx < len(parts)

        if segment.literal is not None:
            if not available:
                return False
            raw = parts[part_idx]
            if raw != segment.literal and unquote(raw) != segment.literal:
                return False
            return self._match_from(seg_idx + 1, parts, part_idx + 1, params)

        if available and parts[part_idx] != "":
            params[segment.name] = unquote(parts[part_idx])
            if self._match_from(seg_idx + 1, parts, part_idx + 1, params):
                return True
            del params[segment.name]

        if segment.optional:
            params[segment.name] = None
            if self._match_from(seg_idx + 1, parts, part_idx, params):
                return True
            del params[segment.name]

        return False

    def __repr__(self) -> str:
        return f"PathMatcher({self.pattern!r})"


def compile_path(pattern: Optional[str]) -> PathMatcher:
    """Compile a route path pattern.

    Args:
        pattern: Pattern such as ``/users/:id``, ``/files/:name?`` or ``/orders/{orderId}``

    Returns:
        A reusable ``PathMatcher``

    Raises:
        InvalidPathPatternError: If the pattern is malformed or repeats a parameter name
    """
    normalized = normalize_path(pattern)
    segments = [_parse_segment(normalized, raw) for raw in _split(normalized)]
    seen = set()
    for segment in segments:
        if segment.name is None:
            continue
        if segment.name in seen:
            raise InvalidPathPatternError(normalized, f"duplicate parameter name {segment.name!r}")
        seen.add(segment.name)
    return PathMatcher(normalized, segments)


class RoutableDefinition(Protocol):
    method: str
    path: str


RouteT = TypeVar("RouteT", bound=RoutableDefinition)


@dataclass
class PathMatch(Generic[RouteT]):
    """A route together with the parameters its pattern bound."""

    route: RouteT
    params: PathParams


def find_matching_route(routes: Iterable[RouteT], method: str, path: str) -> Optional[PathMatch[RouteT]]:
    """Return the first route whose method and pattern match.

    Routes are tried in iteration order, so callers control the tie-break.
    Stored patterns that no longer compile are skipped.
    """
    wanted = (method or "").upper()
    for route in routes:
        if route is None or (route.method or "").upper() != wanted:
            continue
        try:
            matcher = compile_path(route.path or "/")
        except InvalidPathPatternError as e:
            logger.warning(f"Skipping route with malformed pattern: {e.message}")
            continue
        params = matcher.match(path)
        if params is not None:
            return PathMatch(route=route, params=params)
    return None


def match_single(route: RouteT, method: str, path: str) -> Optional[PathMatch[RouteT]]:
    """Match one specific route (used for API-key bound lookups)."""
    return find_matching_route([route], method, path)


__all__: Tuple[str, ...] = (
    "PathMatch",
    "PathMatcher",
    "PathParams",
    "compile_path",
    "find_matching_route",
    "match_single",
    "normalize_path",
)
