"""
Template interpolation for TEMPLATE routes.

The renderer depends only on the ``TemplateRenderer`` protocol; the default
implementation renders Jinja2 templates in a sandboxed environment so stored
route bodies cannot reach Python internals.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Protocol, runtime_checkable

from jinja2 import TemplateError
from jinja2.sandbox import SandboxedEnvironment

from mockbridge.core.errors import InternalRenderError
from mockbridge.core.logging_config import get_logger

logger = get_logger(__name__)


@runtime_checkable
class TemplateRenderer(Protocol):
    def render(self, template: str, context: Dict[str, Any]) -> str:
        """Interpolate ``template`` against ``context``."""
        ...


class JinjaTemplateRenderer:
    """Sandboxed Jinja2 renderer.

    Example:
        ``{"id": "{{ params.id }}", "echo": {{ request.json | tojson }}}``
    """

    def __init__(self, environment: Optional[SandboxedEnvironment] = None) -> None:
        self.environment = environment or SandboxedEnvironment(autoescape=False, keep_trailing_newline=True)

    def render(self, template: str, context: Dict[str, Any]) -> str:
        try:
            return self.environment.from_string(template or "").render(**context)
        except TemplateError as e:
            logger.warning(f"Template rendering failed: {e}")
            raise InternalRenderError(f"Failed to render template: {e}") from e
